"""
File Loading Service

Finds configuration files across a list of search paths and loads them as
JSON. The first path that holds the file wins.
"""

import json
import os
from typing import Any, Dict, List, Optional

from loguru import logger


class FileLoaderService:
    """Loads files from the first matching search path"""

    def __init__(self, search_paths: Optional[List[str]] = None):
        """
        Args:
            search_paths: Directories to search, highest priority first
                (defaults to the working directory and project root variants)
        """
        if search_paths is None:
            self.search_paths = self._get_default_search_paths()
        else:
            self.search_paths = list(search_paths)

    def _get_default_search_paths(self) -> List[str]:
        module_dir = os.path.dirname(os.path.abspath(__file__))
        project_root = os.path.dirname(os.path.dirname(module_dir))
        current_dir = os.getcwd()

        paths = []
        for base in (current_dir, project_root):
            paths.extend([
                base,
                os.path.join(base, "config"),
                os.path.join(base, "configs"),
                os.path.join(base, "settings"),
            ])
        # Keep order, drop duplicates when cwd is the project root
        return list(dict.fromkeys(paths))

    def find_file(self, filename: str) -> Optional[str]:
        """Full path of the first match, or None"""
        for path in self.search_paths:
            file_path = os.path.join(path, filename)
            if os.path.isfile(file_path):
                return file_path
        return None

    def load_json_file(self, filename: str, default_value: Any = None) -> Optional[Dict[str, Any]]:
        """
        Load a JSON file from the search paths

        Args:
            filename: Name of the JSON file to load
            default_value: Returned when the file is missing or invalid

        Returns:
            Parsed JSON data or default_value
        """
        file_path = self.find_file(filename)
        if not file_path:
            logger.warning(f"File '{filename}' not found in any search path")
            return default_value

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded '{filename}' from {file_path}")
            return data
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing JSON file '{filename}': {e}")
            return default_value
        except OSError as e:
            logger.error(f"Error reading file '{filename}': {e}")
            return default_value

    def add_search_path(self, path: str) -> None:
        """Insert a path at the highest priority"""
        if path not in self.search_paths:
            self.search_paths.insert(0, path)
            logger.debug(f"Added search path: {path}")

    def get_search_paths(self) -> List[str]:
        return self.search_paths.copy()


def get_file_loader(search_paths: Optional[List[str]] = None) -> FileLoaderService:
    """Build a loader over the default (or given) search paths"""
    return FileLoaderService(search_paths)
