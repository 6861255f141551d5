import pytest

from alphaball.game.matcher import NameMatcher
from alphaball.game.validator import names_conflict, normalize_name, validate_answer

from conftest import PLAYERS_DB


@pytest.fixture()
def matcher():
    names = set()
    for team in PLAYERS_DB.values():
        names.update(team['legacy'])
    return NameMatcher(names)


def test_normalize_folds_case_accents_punctuation_and_spaces():
    assert normalize_name('  Kylian   Mbappé! ') == 'kylian mbappe'
    assert normalize_name("Samuel Eto'o") == 'samuel etoo'


def test_blank_input_is_empty(matcher):
    result = validate_answer('   ', 'A', [], matcher)
    assert not result.valid
    assert result.reason == 'empty'


def test_wrong_starting_letter(matcher):
    result = validate_answer('Alan Shearer', 'B', [], matcher)
    assert not result.valid
    assert result.reason == 'wrong_letter'


def test_letter_check_ignores_case(matcher):
    result = validate_answer('alan shearer', 'a', [], matcher)
    assert result.valid
    assert result.matched_entity == 'Alan Shearer'


def test_surname_of_used_name_is_already_used(matcher):
    result = validate_answer('Henry', 'H', ['thierry henry'], matcher)
    assert not result.valid
    assert result.reason == 'already_used'


def test_unrelated_used_name_does_not_block(matcher):
    result = validate_answer('Henry', 'H', ['wayne rooney'], matcher)
    assert result.valid
    assert result.matched_entity == 'Thierry Henry'


def test_matched_entity_conflicting_with_used_is_rejected(matcher):
    result = validate_answer('Thiery Henri', 'T', ['henry'], matcher)
    assert not result.valid
    assert result.reason == 'already_used'


def test_unknown_name_is_not_found(matcher):
    result = validate_answer('Qwxyz Qqq', 'Q', [], matcher)
    assert not result.valid
    assert result.reason == 'not_found'


def test_plain_candidate_collection_is_accepted():
    result = validate_answer('Ryan Giggs', 'R', [], ['Ryan Giggs', 'Roy Keane'])
    assert result.valid
    assert result.matched_entity == 'Ryan Giggs'


def test_without_candidates_the_trimmed_input_is_credited():
    result = validate_answer('  Anybody At All ', 'A', [], None)
    assert result.valid
    assert result.matched_entity == 'Anybody At All'


def test_exact_used_answer_blocks_even_without_candidates():
    result = validate_answer('Kaka', 'K', ['kaka'], None)
    assert not result.valid
    assert result.reason == 'already_used'


@pytest.mark.parametrize(
    'a, b, expected',
    [
        ('kaka', 'kaka', True),
        ('henry', 'thierry henry', True),
        ('thierry henry', 'henry', True),
        ('henry', 'wayne rooney', False),
        ('pele', 'pedri', False),
        # Short names only clash on an exact match.
        ('ian', 'ian wright', False),
        ('', 'kaka', False),
    ],
)
def test_names_conflict(a, b, expected):
    assert names_conflict(a, b) is expected
