"""
Avisos no bloqueantes para el usuario (el equivalente a un toast en la UI).

Las rutas devuelven la lista acumulada junto al resultado de la operación.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"
INFO = "info"


@dataclass
class Notification:
    level: str
    message: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


class Notifier:
    def __init__(self):
        self.items: List[Notification] = []

    def _push(self, level: str, message: str, description: Optional[str] = None) -> Notification:
        notification = Notification(level=level, message=message, description=description)
        self.items.append(notification)
        return notification

    def success(self, message: str, description: Optional[str] = None) -> Notification:
        return self._push(SUCCESS, message, description)

    def info(self, message: str, description: Optional[str] = None) -> Notification:
        return self._push(INFO, message, description)

    def warning(self, message: str, description: Optional[str] = None) -> Notification:
        logger.warning("%s: %s", message, description)
        return self._push(WARNING, message, description)

    def error(self, message: str, description: Optional[str] = None) -> Notification:
        logger.error("%s: %s", message, description)
        return self._push(ERROR, message, description)

    def to_list(self) -> List[Dict[str, Optional[str]]]:
        return [n.to_dict() for n in self.items]
