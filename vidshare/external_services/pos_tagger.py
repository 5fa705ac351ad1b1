"""
Part-of-speech tagging used by the recommendation feed.

The recommender only needs one capability from an NLP library: given a list
of tokens, return each token with its most likely part-of-speech tag.  That
capability is described by the ``Tagger`` protocol so callers (and tests) can
supply any compliant implementation.

The default implementation wraps NLTK's pre-trained averaged perceptron
tagger.  The model is static – nothing is trained at runtime – and is selected
by language code (``POS_TAGGER_LANG``).  Its data package
(``averaged_perceptron_tagger_<lang>``) must be available on the NLTK data
path; set ``NLTK_AUTO_DOWNLOAD=true`` to fetch it on first use.
"""

import logging
import time
from typing import List, Optional, Protocol, Sequence, Tuple

import nltk
from nltk.tag.perceptron import PerceptronTagger

from vidshare.core.config import settings
from vidshare.core.exceptions import TaggingError
from vidshare.metrics import POS_TAGGING_DURATION_SECONDS

logger = logging.getLogger(__name__)

TaggedToken = Tuple[str, str]


class Tagger(Protocol):
    """Anything that can tag a token sequence with part-of-speech labels."""

    def tag(self, tokens: Sequence[str]) -> List[TaggedToken]:
        ...


class NltkTagger:
    """Penn-Treebank tagger backed by NLTK's averaged perceptron model."""

    def __init__(
        self,
        lang: str = "eng",
        data_dir: Optional[str] = None,
        auto_download: bool = False,
    ):
        self.lang = lang
        self.resource_name = f"averaged_perceptron_tagger_{lang}"

        if data_dir and data_dir not in nltk.data.path:
            nltk.data.path.insert(0, data_dir)

        self._model = self._load(data_dir, auto_download)

    def _load(self, data_dir: Optional[str], auto_download: bool) -> PerceptronTagger:
        logger.info("Loading POS tagging model: %s", self.resource_name)
        try:
            return PerceptronTagger(lang=self.lang)
        except LookupError as exc:
            if not auto_download:
                raise TaggingError(
                    f"POS tagging model '{self.resource_name}' is not installed"
                ) from exc

        logger.info("Downloading POS tagging model %s", self.resource_name)
        if not nltk.download(self.resource_name, download_dir=data_dir, quiet=True):
            raise TaggingError(f"Could not download POS tagging model '{self.resource_name}'")
        try:
            return PerceptronTagger(lang=self.lang)
        except LookupError as exc:
            raise TaggingError(
                f"POS tagging model '{self.resource_name}' is not installed"
            ) from exc

    def tag(self, tokens: Sequence[str]) -> List[TaggedToken]:
        if any(not isinstance(t, str) for t in tokens):
            raise TaggingError("POS tagger input must be a sequence of strings")

        start = time.perf_counter()
        try:
            tagged = self._model.tag(list(tokens))
        except (TypeError, ValueError, IndexError) as exc:
            raise TaggingError(f"POS tagging failed: {exc}") from exc
        finally:
            POS_TAGGING_DURATION_SECONDS.observe(time.perf_counter() - start)

        return [(token, tag) for token, tag in tagged]


# Global instance
_tagger: Optional[Tagger] = None


def get_tagger() -> Tagger:
    """Return the process-wide tagger, loading the model on first call."""

    global _tagger

    if _tagger is None:
        _tagger = NltkTagger(
            lang=settings.POS_TAGGER_LANG,
            data_dir=settings.NLTK_DATA_DIR,
            auto_download=settings.NLTK_AUTO_DOWNLOAD,
        )

    return _tagger


__all__ = ["Tagger", "TaggedToken", "NltkTagger", "get_tagger"]
