import pytest

from alphaball.game.errors import ReferenceDataError, UnknownModeError
from alphaball.game.reference import ReferenceDataset, resolve_mode


def test_names_are_deduplicated_and_sorted(reference):
    names = reference.names('legacy')
    assert list(names) == sorted(set(names))
    assert names.count('Thierry Henry') == 1
    assert 'Pedri' not in names


def test_icons_is_an_alias_for_legacy(reference):
    assert reference.names('icons') == reference.names('legacy')
    assert resolve_mode(' Modern ') == 'modern'


def test_unknown_mode_raises(reference):
    with pytest.raises(UnknownModeError):
        reference.names('futsal')


def test_matcher_is_built_once_per_mode(reference):
    assert reference.matcher('modern') is reference.matcher('modern')
    assert reference.matcher('modern').match('Bukayo Saka').matched


def test_missing_file_is_a_reference_error(tmp_path):
    dataset = ReferenceDataset(tmp_path / 'nope.json')
    with pytest.raises(ReferenceDataError):
        dataset.names('modern')


def test_malformed_file_is_a_reference_error(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{not json', encoding='utf-8')
    with pytest.raises(ReferenceDataError):
        ReferenceDataset(path).matcher('legacy')
