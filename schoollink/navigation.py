"""Sidebar entries per role: (label, endpoint, icon)."""

SIDEBAR = {
    'admin': [
        ('Dashboard', 'main.dashboard', 'bi-speedometer2'),
        ('Teachers', 'admin.teachers', 'bi-person-badge'),
        ('Classes', 'admin.classes', 'bi-easel'),
        ('Parents', 'admin.parents', 'bi-people'),
        ('Students', 'admin.students', 'bi-mortarboard'),
        ('Reset Requests', 'admin.reset_requests', 'bi-key'),
    ],
    'teacher': [
        ('Dashboard', 'main.dashboard', 'bi-speedometer2'),
        ('My Classes', 'teacher.classes', 'bi-easel'),
        ('Students', 'teacher.students', 'bi-mortarboard'),
        ('Parents', 'teacher.parents', 'bi-people'),
        ('Announcements', 'teacher.announcements', 'bi-megaphone'),
        ('Profile', 'account.profile', 'bi-person-circle'),
    ],
    'parent': [
        ('Dashboard', 'main.dashboard', 'bi-speedometer2'),
        ('My Children', 'parent.children', 'bi-heart'),
        ('Classes', 'parent.classes', 'bi-easel'),
        ('Teacher Posts', 'parent.posts', 'bi-newspaper'),
        ('Messages', 'parent.messages', 'bi-chat-dots'),
        ('Profile', 'account.profile', 'bi-person-circle'),
    ],
}


def sidebar_for(role):
    return SIDEBAR.get(role, [])
