from schoollink.utils.names import format_full_name, get_display_name


def test_full_name_skips_blank_parts():
    assert format_full_name('Jane', 'Doe') == 'Jane Doe'
    assert format_full_name('Jane', 'Doe', '  ', '') == 'Jane Doe'


def test_full_name_with_middle_name_and_suffix():
    assert format_full_name('John', 'Smith', 'Paul', 'Jr.') == 'John Paul Smith Jr.'


def test_display_name_falls_back():
    assert get_display_name('Jane', 'Doe', fallback_name='JD') == 'Jane Doe'
    assert get_display_name(first_name='Jane', fallback_name='Jane D.') == 'Jane D.'
    assert get_display_name() == 'Unknown'
