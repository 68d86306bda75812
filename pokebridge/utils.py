"""
pokebridge simple utilities
"""

import datetime
import logging
import os
import re
import time
from typing import Any, List, Optional

import dateutil.parser

from . import constants

LOGGER = logging.getLogger(__name__)

_NON_WORD_PATTERN = re.compile(r"[^\w\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_ERA_PREFIX_PATTERN = re.compile(
    rf"^({'|'.join(constants.ERA_PREFIXES)})\s+", re.IGNORECASE
)
_NAME_SUFFIX_PATTERN = re.compile(
    rf"\s+({'|'.join(constants.NAME_SUFFIXES)})$", re.IGNORECASE
)


def init_logger() -> None:
    """
    Initialize the main system logger
    """
    constants.LOG_PATH.mkdir(parents=True, exist_ok=True)

    start_time = time.strftime("%Y-%m-%d_%H.%M.%S")

    logging.basicConfig(
        level=(
            logging.DEBUG
            if os.environ.get("POKEBRIDGE_DEBUG", "").lower() in ["true", "1"]
            else logging.INFO
        ),
        format="[%(levelname)s] %(asctime)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(
                str(constants.LOG_PATH.joinpath(f"pokebridge_{start_time}.log"))
            ),
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.ERROR)


def normalize_set_name(name: str) -> str:
    """
    Normalize a set name for comparison: lower case, punctuation
    removed and whitespace collapsed
    :param name: Set name as published by a catalog
    :return Normalized name
    """
    name = _NON_WORD_PATTERN.sub("", name.lower())
    return _WHITESPACE_PATTERN.sub(" ", name).strip()


def clean_set_name(name: str) -> str:
    """
    Normalize a set name and strip the era prefix ("sv", "swsh", ...)
    and generic suffix ("base", "set") from it
    :param name: Set name as published by a catalog
    :return Cleaned name
    """
    cleaned = _ERA_PREFIX_PATTERN.sub("", normalize_set_name(name))
    return _NAME_SUFFIX_PATTERN.sub("", cleaned)


def significant_name_tokens(normalized_name: str) -> List[str]:
    """
    Words of a normalized set name long enough to count as shared
    :param normalized_name: Output of normalize_set_name
    :return Tokens with at least MIN_NAME_TOKEN_LENGTH characters, in order
    """
    return [
        token
        for token in normalized_name.split(" ")
        if len(token) >= constants.MIN_NAME_TOKEN_LENGTH
    ]


def shared_name_token_count(normalized_a: str, normalized_b: str) -> int:
    """
    How many significant words of the first name occur anywhere in the
    second name, so "moon" counts against "sun moonbase"
    :param normalized_a: Normalized name whose words are counted
    :param normalized_b: Normalized name searched for them
    :return Shared word count
    """
    return sum(1 for token in significant_name_tokens(normalized_a) if token in normalized_b)


def strip_leading_zeros(card_number: str) -> str:
    """
    "076" => "76", "0" => "0", "TG05" => "TG05"
    :param card_number: Card number within its set
    :return Card number without leading zeros
    """
    stripped = card_number.lstrip("0")
    return stripped if stripped or not card_number else "0"


def card_numbers_match(left: str, right: str) -> bool:
    """
    Compare two card numbers, first as exact strings, then with the
    leading zeros stripped from both sides
    :param left: Card number from one catalog
    :param right: Card number from the other catalog
    :return Do the numbers identify the same card
    """
    if left == right:
        return True
    return strip_leading_zeros(left) == strip_leading_zeros(right)


def parse_date(value: Any) -> Optional[datetime.date]:
    """
    Parse the assorted date formats the catalogs publish
    ("2023/03/31", "2023-03-31", "Fri, 31 Mar 2023 00:00:00 GMT")
    :param value: Raw value from a payload
    :return Date or None if absent/unparseable
    """
    if not value:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value

    try:
        return dateutil.parser.parse(str(value)).date()
    except (ValueError, OverflowError):
        LOGGER.debug(f"Unable to parse date {value!r}")
        return None


def days_between(
    first: Optional[datetime.date], second: Optional[datetime.date]
) -> Optional[int]:
    """
    Absolute number of days between two dates
    :param first: First date
    :param second: Second date
    :return Day delta or None when either date is unknown
    """
    if first is None or second is None:
        return None
    return abs((second - first).days)


def utc_now() -> datetime.datetime:
    """
    :return Timezone aware current time
    """
    return datetime.datetime.now(datetime.timezone.utc)
