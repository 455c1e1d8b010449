"""Mapping of file extensions to the language labels used in prompts."""

import os
from typing import Dict, Optional

DEFAULT_LANGUAGES: Dict[str, str] = {
    '.js': 'JavaScript',
    '.ts': 'TypeScript',
    '.py': 'Python',
    '.java': 'Java',
    '.cpp': 'C++',
    '.c': 'C',
    '.cs': 'C#',
    '.go': 'Go',
    '.rb': 'Ruby',
    '.php': 'PHP',
    '.swift': 'Swift',
    '.kt': 'Kotlin',
}


def get_file_language(filename: Optional[str], languages: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Return the language label for a filename, or None if it is not reviewed."""
    if not isinstance(filename, str) or not filename:
        return None

    extension = os.path.splitext(filename)[1].lower()
    if not extension:
        return None

    return (languages if languages is not None else DEFAULT_LANGUAGES).get(extension)
