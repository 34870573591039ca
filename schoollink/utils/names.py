def format_full_name(first_name, last_name, middle_name=None, suffix=None):
    """Join name parts with single spaces, skipping a blank middle name or suffix."""
    parts = [first_name]
    if middle_name and middle_name.strip():
        parts.append(middle_name.strip())
    parts.append(last_name)
    if suffix and suffix.strip():
        parts.append(suffix.strip())
    return ' '.join(p.strip() for p in parts if p and p.strip())


def get_display_name(first_name=None, last_name=None, middle_name=None, suffix=None, fallback_name=None):
    if first_name and last_name:
        return format_full_name(first_name, last_name, middle_name, suffix)
    return fallback_name or 'Unknown'
