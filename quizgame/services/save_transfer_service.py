"""
Save transfer service for manual backup and restore.
Exports a user's persisted fields as a JSON bundle and writes them back.

Bundle layout:
    {version: 1, userId, timestamp, coins, inventory, equipped, mistakes,
     tasks, last_login, tutorial_complete, stats, achievements}

Each field carries the raw stored text (or null) so an import writes it back
verbatim. Imports merge: fields missing from the bundle are left untouched.
"""
import json
import logging
from typing import Any, Dict, Union

from quizgame.constants import FIELD_TUTORIAL_COMPLETE, SAVE_FORMAT_VERSION, USER_FIELDS
from quizgame.exceptions import InvalidFormatException
from quizgame.repositories.user_data_repository import UserDataRepository, dump_json
from quizgame.services.date_service import DateService

logger = logging.getLogger("quizgame.save_transfer")


def export_user_data(data: UserDataRepository, user_id: str) -> Dict[str, Any]:
    """
    Build the export bundle for a user.

    Args:
        data: User data repository
        user_id: User to export

    Returns:
        Bundle dictionary (JSON-serializable)
    """
    bundle: Dict[str, Any] = {
        "version": SAVE_FORMAT_VERSION,
        "userId": user_id,
        "timestamp": DateService.now_millis(),
    }
    for field in USER_FIELDS:
        bundle[field] = data.get_raw(user_id, field)

    logger.info(f"Exported save for {user_id}")
    return bundle


def export_user_data_json(data: UserDataRepository, user_id: str) -> str:
    """Export bundle as JSON text (the downloadable save file)"""
    return json.dumps(export_user_data(data, user_id), ensure_ascii=False)


def parse_bundle(bundle: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Parse and check the bundle envelope.

    Raises:
        InvalidFormatException: If not a JSON object or version/userId are missing
    """
    if isinstance(bundle, (str, bytes)):
        try:
            bundle = json.loads(bundle)
        except ValueError as e:
            raise InvalidFormatException(f"not valid JSON ({e})") from e

    if not isinstance(bundle, dict):
        raise InvalidFormatException("expected a JSON object")
    if not bundle.get("version") or not bundle.get("userId"):
        raise InvalidFormatException("missing version or userId")
    return bundle


def _to_raw(value: Any) -> str:
    if isinstance(value, str):
        return value
    return dump_json(value)


def import_user_data(
    data: UserDataRepository,
    user_id: str,
    bundle: Union[str, bytes, Dict[str, Any]]
) -> bool:
    """
    Restore a bundle into user_id's fields.

    Fields that are absent, null or empty are skipped. Values are not
    validated; a malformed field simply reads back as its default later.
    All writes are committed together.

    Raises:
        InvalidFormatException: If the bundle envelope is invalid

    Returns:
        True on success
    """
    parsed = parse_bundle(bundle)

    values = {
        field: _to_raw(parsed[field])
        for field in USER_FIELDS
        if parsed.get(field) not in (None, "")
    }

    with data.lock(user_id):
        data.set_raw_many(user_id, values)

    source_user = parsed.get("userId")
    logger.info(
        f"Imported save into {user_id} from {source_user}: "
        f"{len(values)} field(s) ({', '.join(values) or 'none'})"
    )
    return True


def is_tutorial_done(data: UserDataRepository, user_id: str) -> bool:
    return data.get_raw(user_id, FIELD_TUTORIAL_COMPLETE) == "true"


def mark_tutorial_done(data: UserDataRepository, user_id: str) -> None:
    with data.lock(user_id):
        data.set_raw(user_id, FIELD_TUTORIAL_COMPLETE, "true")
