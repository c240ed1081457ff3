import pytest

from library_admin.models import BookForm, LoanForm, MemberForm
from library_admin.validators import FormValidator, TextValidator, ValidationError


def test_text_validator_basic():
    assert TextValidator.is_filled("Dune")
    assert not TextValidator.is_filled("   ")
    assert not TextValidator.is_filled(None)


@pytest.mark.parametrize("raw, expected", [
    (3, 3), ("12", 12), (" 7 ", 7), (0, None), (-2, None), ("-2", None), ("abc", None), (None, None), (True, None),
    (2.7, None), (2.0, 2), ("2.5", None),
])
def test_positive_int(raw, expected):
    assert TextValidator.to_positive_int(raw) == expected


def test_book_form_is_cleaned():
    payload = FormValidator.validate_book(BookForm(" Dune ", "Frank Herbert ", "SF", "1965", 2))
    assert payload == {"title": "Dune", "author": "Frank Herbert", "category": "SF", "year": 1965, "total_copies": 2}


def test_book_form_lists_every_problem():
    with pytest.raises(ValidationError) as excinfo:
        FormValidator.validate_book(BookForm(title="", author="A", category=" ", year=None, total_copies=0))
    message = str(excinfo.value)
    assert "title is required" in message
    assert "category is required" in message
    assert "year" in message
    assert "total copies" in message
    assert "author" not in message


def test_member_form():
    assert FormValidator.validate_member(MemberForm(" Amy ", "amy@library.test")) == {
        "name": "Amy", "email": "amy@library.test",
    }
    with pytest.raises(ValidationError, match="email is required"):
        FormValidator.validate_member(MemberForm("Amy", ""))


def test_loan_form_requires_all_selections():
    with pytest.raises(ValidationError, match="select a member"):
        FormValidator.validate_loan(LoanForm(member_id=None, book_id=1, due_date="2024-01-30"))
    assert FormValidator.validate_loan(LoanForm(member_id=0, book_id=1, due_date="2024-01-30")) == {
        "member_id": 0, "book_id": 1, "due_date": "2024-01-30",
    }


def test_forms_reset_to_empty():
    form = BookForm("Dune", "Frank Herbert", "SF", 1965, 2)
    form.reset()
    assert form == BookForm()
    loan = LoanForm(1, 2, "2024-01-30")
    loan.reset()
    assert loan == LoanForm()
