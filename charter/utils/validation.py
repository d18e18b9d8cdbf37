import re
from datetime import date, datetime
from typing import Optional


class Validator:
    """Input validation helpers"""

    @staticmethod
    def validate_email(email: str) -> bool:
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return isinstance(email, str) and re.match(pattern, email) is not None

    @staticmethod
    def validate_phone(phone: str) -> bool:
        cleaned = re.sub(r'[\s\-\(\)\+]', '', phone or '')
        return cleaned.isdigit() and 7 <= len(cleaned) <= 15

    @staticmethod
    def parse_date(value) -> Optional[date]:
        """YYYY-MM-DD string to date, None if malformed"""
        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(str(value), '%Y-%m-%d').date()
        except (TypeError, ValueError):
            return None

    @staticmethod
    def parse_time(value) -> Optional[str]:
        """Normalize H:MM / HH:MM to HH:MM, None if malformed"""
        try:
            return datetime.strptime(str(value), '%H:%M').strftime('%H:%M')
        except (TypeError, ValueError):
            return None

    @staticmethod
    def parse_int(value, minimum: int = None, maximum: int = None) -> Optional[int]:
        if isinstance(value, bool):
            return None
        try:
            number = int(value)
        except (TypeError, ValueError):
            return None
        if isinstance(value, float) and value != number:
            return None
        if minimum is not None and number < minimum:
            return None
        if maximum is not None and number > maximum:
            return None
        return number

    @staticmethod
    def sanitize_input(text: str, max_length: int = None) -> str:
        if not text:
            return ""
        text = str(text).strip()
        if max_length and len(text) > max_length:
            text = text[:max_length]
        return text
