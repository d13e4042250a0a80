"""
Input validation for receipts and guesses.

Validators never raise. Each returns a list of ValidationError entries in
the order the problems were found; an empty list means the input is valid.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .currency import get_supported_currencies

MAX_NAME_LENGTH = 50
MAX_QUANTITY = 999
MAX_AMOUNT = Decimal('999999')
MAX_RECEIPT_ITEMS = 50


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {'field': self.field, 'message': self.message}


def _parse_number(value):
    """Return a finite Decimal for numeric input, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _validate_text(value, field: str, label: str) -> list:
    if not isinstance(value, str) or not value.strip():
        return [ValidationError(field, f'{label} is required')]
    if len(value) > MAX_NAME_LENGTH:
        return [ValidationError(field, f'{label} must be {MAX_NAME_LENGTH} characters or less')]
    return []


def validate_item(item, quantity, price) -> list:
    """Validate one receipt line: name, quantity and unit price."""
    errors = _validate_text(item, 'item', 'Item name')

    qty = _parse_number(quantity)
    if qty is None:
        errors.append(ValidationError('quantity', 'Quantity must be a whole number'))
    elif qty <= 0:
        errors.append(ValidationError('quantity', 'Quantity must be greater than 0'))
    elif qty > MAX_QUANTITY:
        errors.append(ValidationError('quantity', f'Quantity cannot exceed {MAX_QUANTITY}'))
    elif qty != qty.to_integral_value():
        errors.append(ValidationError('quantity', 'Quantity must be a whole number'))

    amount = _parse_number(price)
    if amount is None:
        errors.append(ValidationError('price', 'Price must be a valid number'))
    elif amount <= 0:
        errors.append(ValidationError('price', 'Price must be greater than 0'))
    elif amount > MAX_AMOUNT:
        errors.append(ValidationError('price', 'Price cannot exceed 999,999'))

    return errors


def validate_receipt_items(items) -> list:
    """
    Validate a whole receipt.

    Item errors are tagged ``items[i].<field>`` and their messages prefixed
    with the 1-based line number.
    """
    if not items:
        return [ValidationError('items', 'At least one item is required')]

    errors = []
    if len(items) > MAX_RECEIPT_ITEMS:
        errors.append(ValidationError('items', f'Cannot have more than {MAX_RECEIPT_ITEMS} items'))

    for index, line in enumerate(items):
        if not isinstance(line, dict):
            errors.append(ValidationError(f'items[{index}]', f'Item {index + 1}: Invalid item format'))
            continue
        for error in validate_item(line.get('item'), line.get('qty'), line.get('price')):
            errors.append(ValidationError(
                f'items[{index}].{error.field}',
                f'Item {index + 1}: {error.message}',
            ))

    return errors


def split_location(location) -> tuple:
    """Split ``"City, Country"`` on its last comma into (city, country)."""
    if not isinstance(location, str):
        return '', ''
    city, _, country = location.rpartition(',')
    if not city:
        # No comma: treat the whole value as the city
        return country.strip(), ''
    return city.strip(), country.strip()


def validate_location(country, city) -> list:
    errors = _validate_text(country, 'country', 'Country')
    errors.extend(_validate_text(city, 'city', 'City'))
    return errors


def validate_currency(currency) -> list:
    if currency not in get_supported_currencies():
        return [ValidationError('currency', f'Currency {currency} is not supported')]
    return []


def validate_guess(guess) -> list:
    """Validate a raw guess string as typed by the player."""
    if guess is None or not str(guess).strip():
        return [ValidationError('guess', 'Guess is required')]

    value = _parse_number(guess)
    if value is None:
        return [ValidationError('guess', 'Guess must be a valid number')]
    if value <= 0:
        return [ValidationError('guess', 'Guess must be greater than 0')]
    if value > MAX_AMOUNT:
        return [ValidationError('guess', 'Guess cannot exceed 999,999')]
    return []
