import random
from collections import namedtuple
from typing import Optional, Sequence

WordPair = namedtuple('WordPair', ['civilian', 'spy'])

# Used when the host starts a round without supplying words.
DEFAULT_WORD_PAIRS = (
    WordPair('coffee', 'tea'),
    WordPair('piano', 'guitar'),
    WordPair('beach', 'desert'),
    WordPair('doctor', 'nurse'),
    WordPair('butterfly', 'moth'),
    WordPair('library', 'bookstore'),
    WordPair('sunrise', 'sunset'),
    WordPair('dumpling', 'wonton'),
    WordPair('subway', 'bus'),
    WordPair('lipstick', 'lip balm'),
    WordPair('umbrella', 'raincoat'),
    WordPair('chess', 'checkers'),
)


def choose_word_pair(rng: Optional[random.Random] = None,
                     pairs: Sequence[WordPair] = DEFAULT_WORD_PAIRS) -> WordPair:
    """Pick a pair from the bank, swapping sides half of the time."""
    rng = rng or random.Random()
    pair = rng.choice(list(pairs))
    if rng.random() < 0.5:
        return WordPair(pair.spy, pair.civilian)
    return pair
