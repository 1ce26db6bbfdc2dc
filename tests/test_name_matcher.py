"""
Name Matcher Tests
===================
Longest common substring and cost suggestions.
"""

from profitflow.config import MatchConfig
from profitflow.services.name_matcher import NameMatcher, longest_common_substring


def test_longest_common_substring_is_case_insensitive():
    assert longest_common_substring('Widget Red', 'widget-red') >= 6
    assert longest_common_substring('ABC', 'abc') == 3


def test_longest_common_substring_edges():
    assert longest_common_substring('', 'abc') == 0
    assert longest_common_substring('abc', 'xyz') == 0
    assert longest_common_substring('xxabcdyy', 'zabcdz') == 4


def test_suggests_similar_product():
    suggestions = NameMatcher().suggest('Widget Red XL', {'widget-red': 4.0, 'Mug': 2.0})

    assert [s.name for s in suggestions] == ['widget-red']
    assert suggestions[0].cost == 4.0
    assert suggestions[0].score >= 6


def test_threshold_requires_more_than_three_characters():
    matcher = NameMatcher()
    assert matcher.suggest('abcx', {'abcy': 1.0}) == []
    assert len(matcher.suggest('abcdx', {'abcdy': 1.0})) == 1


def test_at_most_three_best_first_ties_stable():
    pool = {
        'Blue Mug Large': 1.0,
        'Blue Mug Small': 2.0,
        'Blue Mug': 3.0,
        'Blue Mug Medium': 4.0,
    }
    suggestions = NameMatcher().suggest('Blue Mug Medium XL', pool)

    assert [s.name for s in suggestions] == ['Blue Mug Medium', 'Blue Mug Large', 'Blue Mug Small']


def test_custom_limit():
    matcher = NameMatcher(MatchConfig(max_suggestions=1))
    suggestions = matcher.suggest('Blue Mug XL', {'Blue Mug': 1.0, 'Blue Mugs': 2.0})
    assert len(suggestions) == 1
