from charts.normalize import is_valid_key, track_key


def test_case_and_whitespace_fold_to_same_key():
    assert track_key("Bad Bunny", "MONACO") == track_key("bad bunny", "monaco ")
    assert track_key("Bad Bunny", "MONACO") == "bad bunny - monaco"


def test_punctuation_is_removed_but_hyphens_survive():
    assert track_key("Tyler, The Creator", "EARFQUAKE!") == "tyler the creator - earfquake"
    assert track_key("Jay-Z", "Empire State of Mind") == "jay-z - empire state of mind"


def test_latin_extended_letters_are_preserved():
    assert track_key("Beyoncé", "Halo") == "beyoncé - halo"
    assert track_key("ROSALÍA", "DESPECHÁ") == "rosalía - despechá"
    assert track_key("Beyoncé", "Halo") != track_key("Beyonce", "Halo")


def test_html_tags_are_stripped():
    assert track_key("<b>Drake</b>", "<i>One Dance</i>") == "drake - one dance"


def test_internal_whitespace_collapses():
    assert track_key("Daft   Punk", "One\tMore\nTime") == "daft punk - one more time"


def test_empty_pair_is_rejected():
    assert track_key("", "") == "-"
    assert not is_valid_key(track_key("", ""))
    assert not is_valid_key(track_key(None, None))
    assert not is_valid_key("")
    assert is_valid_key(track_key("", "Solo Title"))
