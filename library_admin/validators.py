from typing import Any, Dict, Optional

from library_admin.models import BookForm, LoanForm, MemberForm


class ValidationError(ValueError):
    """Form input that must not be sent to the catalog service."""
    pass


class TextValidator:
    """Basic field checks shared by the admin forms."""

    @staticmethod
    def is_filled(text: Optional[str]) -> bool:
        return text is not None and bool(str(text).strip())

    @staticmethod
    def to_positive_int(value: Any) -> Optional[int]:
        """Return ``value`` as a positive int, or None when it is missing, fractional or not positive."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value.lstrip("-").isdigit():
                return None
        if isinstance(value, float) and not value.is_integer():
            return None
        try:
            number = int(value)
        except (TypeError, ValueError):
            return None
        return number if number > 0 else None


class FormValidator:
    """Pre-flight checks for the create mutations.

    Each ``validate_*`` returns the cleaned request payload or raises
    :class:`ValidationError` naming every offending field.
    """

    @staticmethod
    def _require(problems: list, ok: bool, message: str) -> None:
        if not ok:
            problems.append(message)

    @staticmethod
    def validate_book(form: BookForm) -> Dict[str, Any]:
        problems: list = []
        for name in ("title", "author", "category"):
            FormValidator._require(problems, TextValidator.is_filled(getattr(form, name)), f"{name} is required")
        year = TextValidator.to_positive_int(form.year)
        copies = TextValidator.to_positive_int(form.total_copies)
        FormValidator._require(problems, year is not None, "year must be a positive number")
        FormValidator._require(problems, copies is not None, "total copies must be greater than zero")
        if problems:
            raise ValidationError("; ".join(problems))
        return {
            "title": form.title.strip(),
            "author": form.author.strip(),
            "category": form.category.strip(),
            "year": year,
            "total_copies": copies,
        }

    @staticmethod
    def validate_member(form: MemberForm) -> Dict[str, Any]:
        problems: list = []
        FormValidator._require(problems, TextValidator.is_filled(form.name), "name is required")
        FormValidator._require(problems, TextValidator.is_filled(form.email), "email is required")
        if problems:
            raise ValidationError("; ".join(problems))
        return {"name": form.name.strip(), "email": form.email.strip()}

    @staticmethod
    def validate_loan(form: LoanForm) -> Dict[str, Any]:
        problems: list = []
        FormValidator._require(problems, form.member_id is not None, "select a member")
        FormValidator._require(problems, form.book_id is not None, "select a book")
        FormValidator._require(problems, TextValidator.is_filled(form.due_date), "select a due date")
        if problems:
            raise ValidationError("; ".join(problems))
        return {"member_id": form.member_id, "book_id": form.book_id, "due_date": form.due_date.strip()}
