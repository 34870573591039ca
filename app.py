from schoollink import create_app

# Expose a WSGI-compatible app object for production servers (e.g., gunicorn, waitress)
app = create_app()

# Developer-friendly startup
import os
import socket
import sys
import webbrowser
from threading import Timer


def check_port(port):
    """Check if a port is available"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    result = sock.connect_ex(('127.0.0.1', port))
    sock.close()
    return result != 0


def find_available_port(start_port=8000, max_port=8100):
    """Find an available port starting from start_port"""
    for port in range(start_port, max_port):
        if check_port(port):
            return port
    return None


def open_browser(url):
    """Open browser after a delay"""
    def open_url():
        try:
            webbrowser.open(url)
        except webbrowser.Error as e:
            app.logger.warning(f"Could not open browser automatically: {e}")

    Timer(2.0, open_url).start()


def print_startup_info(port):
    print("Starting SchoolLink")
    print("=" * 50)
    print(f"Local URL: http://localhost:{port}")
    print("=" * 50)
    print("No accounts yet? Create the first administrator with:")
    print("  flask --app app create-admin --email you@example.com --name 'Your Name' --password ...")
    print("Press Ctrl+C to stop the server")
    print("=" * 50)


def main():
    port = find_available_port()
    if not port:
        print("No available ports found in range 8000-8100")
        return False

    print_startup_info(port)
    if not os.getenv('SCHOOLLINK_NO_BROWSER'):
        open_browser(f"http://localhost:{port}")

    app.run(host='0.0.0.0', port=port, debug=True, use_reloader=False)
    return True


if __name__ == '__main__':
    try:
        sys.exit(0 if main() else 1)
    except KeyboardInterrupt:
        print("\nSchoolLink stopped by user")
        sys.exit(0)
