"""
Text recognition provider interface.

visualdiff does not ship an OCR engine. Callers that have one wrap it in a
TextRecognizer subclass and hand it to ImageComparator; without one, text
comparison is skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OCRWord:
    text: str
    bbox: Tuple[int, int, int, int] = (0, 0, 0, 0)


@dataclass(frozen=True)
class OCRResult:
    text: str
    words: List[OCRWord] = field(default_factory=list)


class TextRecognizer:
    """Base class for OCR providers"""

    async def recognize(self, image: Image.Image) -> OCRResult:
        raise NotImplementedError


async def recognize_buffer(recognizer: Optional[TextRecognizer], buffer: np.ndarray) -> Optional[OCRResult]:
    """Run OCR on a normalized RGBA buffer, returning None when unavailable or failed"""
    if recognizer is None:
        return None
    try:
        return await recognizer.recognize(Image.fromarray(buffer))
    except Exception as e:
        logger.warning(f"OCR analysis failed: {e}")
        return None
