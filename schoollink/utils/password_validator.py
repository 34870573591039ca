import re
from typing import List, Tuple

MIN_LENGTH = 8


class PasswordValidator:
    def __init__(self):
        self.common_sequences = [
            # Numeric sequences
            '0123456789', '9876543210',
            # Alphabetic sequences
            'abcdefghijklmnopqrstuvwxyz', 'zyxwvutsrqponmlkjihgfedcba',
            # Keyboard sequences
            'qwertyuiop', 'asdfghjkl', 'zxcvbnm',
            '1qaz2wsx', '1q2w3e4r'
        ]

        self.common_passwords = [
            'password', 'password1', '12345678', 'qwerty123', 'welcome1',
            'letmein1', 'teacher1', 'parent12', 'school123', 'student1'
        ]

    def check_sequential_patterns(self, password: str) -> List[str]:
        """Check for sequential patterns in the password."""
        issues = []

        if re.search(r'(\d)\1{2,}', password):
            issues.append("Password contains repeated numbers")

        for seq in self.common_sequences:
            if seq in password.lower():
                issues.append(f"Password contains a common sequence: {seq}")

        return issues

    def check_common_passwords(self, password: str) -> bool:
        """Check if the password is in the list of common passwords."""
        return password.lower() in self.common_passwords

    def validate_password(self, password: str) -> Tuple[bool, List[str]]:
        """Validate password strength and return (is_valid, issues)."""
        issues = []
        password = password or ''

        if len(password) < MIN_LENGTH:
            issues.append(f"Password must be at least {MIN_LENGTH} characters long")

        issues.extend(self.check_sequential_patterns(password))

        if self.check_common_passwords(password):
            issues.append("Password is too common and easily guessable")

        if not re.search(r'\d', password):
            issues.append("Password must contain at least one number")

        if not re.search(r'[A-Za-z]', password):
            issues.append("Password must contain at least one letter")

        return len(issues) == 0, issues
