import os
import json
import datetime
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from src.conceptmap.models.conversation import Conversation, ConversationMap
from src.conceptmap.workspace import Workspace

logger = logging.getLogger(__name__)

EXPORT_DIR = os.getenv("EXPORT_DIR", os.path.join(os.getcwd(), "exports"))


def export_filename(now: Optional[datetime.datetime] = None) -> str:
    now = now or datetime.datetime.now()
    return now.strftime("conversations-%Y-%m-%d-%H-%M.json")


def export_payload(workspace: Workspace) -> Dict[str, Any]:
    return workspace.to_document()


def export_to_folder(workspace: Workspace, out_dir: Optional[str] = None) -> str:
    """Write every conversation to a timestamped JSON file. Returns its path."""
    target = out_dir or EXPORT_DIR
    os.makedirs(target, exist_ok=True)
    out_path = os.path.join(target, export_filename())
    with open(out_path, 'w', encoding='utf-8') as f:
        json.dump(export_payload(workspace), f, ensure_ascii=False, indent=2)
    logger.info("Exported %d conversation(s) to %s", len(workspace.to_document()), out_path)
    return out_path


def parse_import(data: Any) -> Dict[str, Conversation]:
    """Validate an imported conversations map. Raises ValueError if malformed."""
    try:
        return ConversationMap.model_validate(data).root
    except ValidationError as e:
        raise ValueError(f"Invalid conversations file: {e.error_count()} error(s)") from e


def import_into(workspace: Workspace, data: Any) -> int:
    conversations = parse_import(data)
    workspace.replace_all(conversations)
    logger.info("Imported %d conversation(s)", len(conversations))
    return len(conversations)


def import_from_file(workspace: Workspace, path: str) -> int:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return import_into(workspace, data)
