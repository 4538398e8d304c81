import string
from typing import List, Optional, Protocol, Set, Tuple, runtime_checkable

import nltk
from nltk.corpus import stopwords
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer

# (token, position)
Token = Tuple[str, int]


@runtime_checkable
class Tokenizer(Protocol):
    """Anything that turns text into an ordered sequence of (token, position) pairs."""

    def tokenize(self, text: str) -> List[Token]:
        ...


class WhitespaceTokenizer:
    """Splits on whitespace. Case is preserved and nothing is normalized."""

    def tokenize(self, text: str) -> List[Token]:
        return [(token, position) for position, token in enumerate(text.split())]

    def __repr__(self):
        return "WhitespaceTokenizer()"


class NltkTokenizer:
    """Word tokenizer with optional lowercasing, stopword removal and stemming."""

    def __init__(self, lowercase: bool = True, remove_punctuation: bool = True,
                 remove_stopwords: bool = False, stemming: bool = False,
                 min_word_length: int = 1, max_word_length: int = 50,
                 stopword_set: Optional[Set[str]] = None):
        """
        Initialize tokenizer.

        Args:
            lowercase: Lowercase text before tokenizing
            remove_punctuation: Strip ASCII punctuation before tokenizing
            remove_stopwords: Drop English stopwords (downloads the NLTK corpus if needed)
            stemming: Apply the Porter stemmer
            min_word_length: Shortest token kept
            max_word_length: Longest token kept
            stopword_set: Explicit stopword set, skips the NLTK corpus
        """
        self.lowercase = lowercase
        self.remove_punctuation = remove_punctuation
        self.min_word_length = min_word_length
        self.max_word_length = max_word_length
        self.stemmer = PorterStemmer() if stemming else None
        self._splitter = RegexpTokenizer(r"\w+")

        if stopword_set is not None:
            self.stopwords = set(stopword_set)
        elif remove_stopwords:
            self._download_nltk_data()
            self.stopwords = set(stopwords.words('english'))
        else:
            self.stopwords = set()

    @classmethod
    def from_config(cls, config) -> 'NltkTokenizer':
        """Create from the `tokenizer` section of the Hydra config."""
        return cls(
            lowercase=config.get('lowercase', True),
            remove_punctuation=config.get('remove_punctuation', True),
            remove_stopwords=config.get('remove_stopwords', False),
            stemming=config.get('stemming', False),
            min_word_length=config.get('min_word_length', 1),
            max_word_length=config.get('max_word_length', 50),
        )

    def _download_nltk_data(self):
        """Download required NLTK data."""
        try:
            nltk.data.find('corpora/stopwords')
        except LookupError:
            nltk.download('stopwords', quiet=True)

    def tokenize(self, text: str) -> List[Token]:
        if not text:
            return []

        if self.lowercase:
            text = text.lower()

        if self.remove_punctuation:
            text = text.translate(str.maketrans('', '', string.punctuation))

        tokens = []
        for position, token in enumerate(self._splitter.tokenize(text)):
            if not self.min_word_length <= len(token) <= self.max_word_length:
                continue
            if token in self.stopwords:
                continue
            if self.stemmer:
                token = self.stemmer.stem(token)
            tokens.append((token, position))

        return tokens

    def __repr__(self):
        return (f"NltkTokenizer(lowercase={self.lowercase}, stemming={self.stemmer is not None}, "
                f"stopwords={len(self.stopwords)})")


def build_tokenizer(config=None) -> Tokenizer:
    """
    Build the tokenizer named by `config.tokenizer.name`.

    Args:
        config: Hydra config (or None for the whitespace default)

    Returns:
        A Tokenizer
    """
    if config is None or config.get('tokenizer') is None:
        return WhitespaceTokenizer()

    name = config.tokenizer.get('name', 'whitespace')
    if name == 'whitespace':
        return WhitespaceTokenizer()
    elif name == 'nltk':
        return NltkTokenizer.from_config(config.tokenizer)
    else:
        raise ValueError(f"Unknown tokenizer: {name}")
