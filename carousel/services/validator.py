"""
Input validation for the carousel form, run before anything is segmented.

The layout core never calls this module; it only protects the boundary
where raw user text and header/footer strings come in.
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from carousel.config import settings
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)

MAX_USERNAME_LENGTH = 30
MAX_FOOTER_LENGTH = 100

_PARAGRAPH_BREAK = re.compile(r'\n\s*\n')
_SUSPICIOUS = re.compile(r'[<>{}]')
_JS_SCHEME = re.compile(r'javascript:', re.IGNORECASE)


class ValidationReport(BaseModel):
    """Errors block generation, warnings are shown to the user but do not."""
    model_config = ConfigDict(frozen=True)

    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    char_count: int = 0
    paragraph_count: int = 0
    text: Optional["ValidationReport"] = None
    config: Optional["ValidationReport"] = None

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors


class Validator:
    """Checks raw carousel text and the render strings against fixed limits."""

    def __init__(
        self,
        max_text_length: Optional[int] = None,
        min_text_length: Optional[int] = None,
        max_slides: Optional[int] = None
    ):
        self.max_text_length = max_text_length if max_text_length is not None else settings.MAX_TEXT_LENGTH
        self.min_text_length = min_text_length if min_text_length is not None else settings.MIN_TEXT_LENGTH
        self.max_slides = max_slides if max_slides is not None else settings.MAX_SLIDES
        self.slide_limit_warning = (
            f"More than {self.max_slides} slides (Instagram limits a carousel to {self.max_slides} slides)"
        )

    def validate_text(self, text: Optional[str]) -> ValidationReport:
        if not text or not text.strip():
            return ValidationReport(errors=["Enter the text for the carousel"])

        errors: List[str] = []
        warnings: List[str] = []

        if len(text) > self.max_text_length:
            errors.append(f"Text exceeds the maximum length ({self.max_text_length} characters)")

        if len(text) < self.min_text_length:
            warnings.append("Text is too short for a carousel")

        paragraphs = [p for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
        if len(paragraphs) > self.max_slides:
            warnings.append(self.slide_limit_warning)

        if _SUSPICIOUS.search(text):
            warnings.append("Text contains special characters that may not display correctly")

        return ValidationReport(
            errors=errors,
            warnings=warnings,
            char_count=len(text),
            paragraph_count=len(paragraphs)
        )

    def validate_config(self, config: Dict[str, Any]) -> ValidationReport:
        """Check ``username`` and ``footer`` strings."""
        errors: List[str] = []
        warnings: List[str] = []
        username = config.get('username') or ''
        footer = config.get('footer') or ''

        if not username.strip():
            warnings.append("Username is not set")
        if len(username) > MAX_USERNAME_LENGTH:
            errors.append(f"Username is too long (maximum {MAX_USERNAME_LENGTH} characters)")

        if not footer.strip():
            warnings.append("Footer text is not set")
        if len(footer) > MAX_FOOTER_LENGTH:
            errors.append(f"Footer text is too long (maximum {MAX_FOOTER_LENGTH} characters)")

        return ValidationReport(errors=errors, warnings=warnings)

    def validate_all(self, text: Optional[str], config: Optional[Dict[str, Any]] = None) -> ValidationReport:
        text_report = self.validate_text(text)
        config_report = self.validate_config(config or {})
        report = ValidationReport(
            errors=text_report.errors + config_report.errors,
            warnings=text_report.warnings + config_report.warnings,
            char_count=text_report.char_count,
            paragraph_count=text_report.paragraph_count,
            text=text_report,
            config=config_report
        )
        if not report.is_valid:
            logger.info(f"[VALIDATION] {len(report.errors)} error(s): {'; '.join(report.errors)}")
        return report

    def adjust_slide_warnings(self, report: Optional[ValidationReport], slide_count: int) -> Optional[ValidationReport]:
        """Re-evaluate the slide limit warning against the real slide count.

        The paragraph count used by ``validate_text`` can differ from the
        number of units the segmenter actually produced.
        """
        if report is None:
            return None

        def update(warnings: List[str]) -> List[str]:
            filtered = [w for w in warnings if w != self.slide_limit_warning]
            if slide_count > self.max_slides:
                filtered.append(self.slide_limit_warning)
            return filtered

        updates: Dict[str, Any] = {'warnings': update(report.warnings)}
        if report.text is not None:
            updates['text'] = report.text.model_copy(update={'warnings': update(report.text.warnings)})
        return report.model_copy(update=updates)

    @staticmethod
    def sanitize(text: str) -> str:
        """Strip angle brackets and ``javascript:`` schemes."""
        return _JS_SCHEME.sub('', text.replace('<', '').replace('>', '')).strip()
