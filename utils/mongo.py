from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp at millisecond precision, the form the Mongo driver hands back."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_naive_utc(value):
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_mongo_data(data):
    """Drop Mongo's internal ``_id`` recursively; documents are addressed by ``id``."""
    if isinstance(data, list):
        return [parse_mongo_data(item) for item in data]
    if isinstance(data, dict):
        return {k: parse_mongo_data(v) for k, v in data.items() if k != "_id"}
    return data
