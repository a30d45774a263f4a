"""
Hierarchical key-value state store the results are published to
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Capabilities the reconciler needs from the state store.

    Paths are dot separated (``month.03.maxMustermann.age``). Objects carry
    metadata (type, display name, value type), states carry current values.
    """

    def set_object_not_exists(self, path: str, obj: Dict) -> bool: ...

    def set_state_changed(self, path: str, value: Any) -> bool: ...

    def list_channels(self, parent: str) -> List[str]: ...

    def delete_object(self, path: str, recursive: bool = False) -> None: ...


class MemoryStore:
    """In-memory StateStore, also the base of the file backed store"""

    def __init__(self, objects: Optional[Dict[str, Dict]] = None,
                 states: Optional[Dict[str, Dict]] = None):
        self.objects: Dict[str, Dict] = dict(objects or {})
        self.states: Dict[str, Dict] = dict(states or {})
        self.mutations = 0

    def get_object(self, path: str) -> Optional[Dict]:
        return self.objects.get(path)

    def set_object_not_exists(self, path: str, obj: Dict) -> bool:
        if path in self.objects:
            return False
        self.objects[path] = obj
        self.mutations += 1
        return True

    def get_state(self, path: str) -> Any:
        state = self.states.get(path)
        return state['val'] if state else None

    def set_state_changed(self, path: str, value: Any) -> bool:
        current = self.states.get(path)
        if current is not None and current['val'] == value:
            return False
        self.states[path] = {'val': value, 'lc': int(time.time() * 1000)}
        self.mutations += 1
        return True

    def list_channels(self, parent: str) -> List[str]:
        prefix = parent + '.'
        return sorted(
            path for path, obj in self.objects.items()
            if path.startswith(prefix) and obj.get('type') == 'channel'
        )

    def delete_object(self, path: str, recursive: bool = False) -> None:
        def matches(key):
            return key == path or (recursive and key.startswith(path + '.'))

        doomed_objects = [key for key in self.objects if matches(key)]
        doomed_states = [key for key in self.states if matches(key)]
        for key in doomed_objects:
            del self.objects[key]
        for key in doomed_states:
            del self.states[key]
        if doomed_objects or doomed_states:
            self.mutations += 1

    def copy(self) -> 'MemoryStore':
        return MemoryStore(
            objects=json.loads(json.dumps(self.objects)),
            states=json.loads(json.dumps(self.states)),
        )


class JsonFileStore(MemoryStore):
    """StateStore persisted to a single JSON file, replaced atomically on save"""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__()
        self.load()

    def load(self):
        if not self.path.exists():
            logger.info(f"State file {self.path} not found, starting empty")
            return

        with self.path.open('r', encoding='utf-8') as f:
            data = json.load(f)

        self.objects = dict(data.get('objects', {}))
        self.states = dict(data.get('states', {}))
        logger.debug(f"Loaded {len(self.objects)} objects and {len(self.states)} states from {self.path}")

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {'version': 1, 'objects': self.objects, 'states': self.states}

        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            try:
                json.dump(payload, temp_file, indent=2, sort_keys=True, ensure_ascii=False)
                temp_file.write('\n')
            except BaseException:
                temp_file.close()
                os.unlink(temp_name)
                raise

        try:
            os.replace(temp_name, self.path)
        except OSError:
            os.unlink(temp_name)
            raise
        logger.debug(f"Saved state to {self.path}")
