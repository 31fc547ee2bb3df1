"""Language tag mappings for the built-in and ripgrep scan strategies.

The two vocabularies do not line up for every tag, so a language filter is a
best-effort narrowing and results may differ between strategies when one is
active.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

_EXTENSIONS_BY_LANGUAGE: Dict[str, Tuple[str, ...]] = {
    "go": (".go",),
    "rust": (".rs",),
    "rs": (".rs",),
    "python": (".py", ".pyi"),
    "py": (".py", ".pyi"),
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "js": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".tsx"),
    "ts": (".ts", ".tsx"),
    "java": (".java",),
    "c": (".c", ".h"),
    "cpp": (".cpp", ".cc", ".cxx", ".hpp", ".hh", ".h"),
    "c++": (".cpp", ".cc", ".cxx", ".hpp", ".hh", ".h"),
    "csharp": (".cs",),
    "cs": (".cs",),
    "ruby": (".rb",),
    "rb": (".rb",),
    "php": (".php",),
    "swift": (".swift",),
    "kotlin": (".kt", ".kts"),
    "kt": (".kt", ".kts"),
    "scala": (".scala",),
    "vue": (".vue",),
    "sh": (".sh", ".bash"),
    "shell": (".sh", ".bash"),
    "bash": (".sh", ".bash"),
    "html": (".html", ".htm"),
    "css": (".css",),
    "json": (".json",),
    "yaml": (".yaml", ".yml"),
    "yml": (".yaml", ".yml"),
    "toml": (".toml",),
    "markdown": (".md", ".markdown"),
    "md": (".md", ".markdown"),
    "sql": (".sql",),
}

_RIPGREP_TYPES: Dict[str, str] = {
    "python": "py",
    "javascript": "js",
    "typescript": "ts",
    "rust": "rust",
    "rs": "rust",
    "c++": "cpp",
    "csharp": "csharp",
    "cs": "csharp",
    "ruby": "ruby",
    "rb": "ruby",
    "kotlin": "kotlin",
    "kt": "kotlin",
    "shell": "sh",
    "bash": "sh",
    "yml": "yaml",
    "markdown": "markdown",
    "md": "markdown",
}

SUPPORTED_LANGUAGES: List[Dict[str, str]] = [
    {"value": "java", "label": "Java"},
    {"value": "js", "label": "React/JSX"},
    {"value": "py", "label": "Python"},
    {"value": "go", "label": "Go"},
    {"value": "ts", "label": "TypeScript"},
    {"value": "javascript", "label": "JavaScript"},
    {"value": "csharp", "label": "C#"},
    {"value": "cpp", "label": "C++"},
    {"value": "rust", "label": "Rust"},
    {"value": "vue", "label": "Vue"},
    {"value": "swift", "label": "Swift"},
    {"value": "kotlin", "label": "Kotlin"},
    {"value": "ruby", "label": "Ruby"},
    {"value": "php", "label": "PHP"},
]


def language_extensions(language: Optional[str]) -> Tuple[str, ...]:
    """Return file suffixes for ``language``; empty means no filtering."""
    if not language:
        return ()
    return _EXTENSIONS_BY_LANGUAGE.get(language.strip().lower(), ())


def ripgrep_type(language: Optional[str]) -> Optional[str]:
    """Translate ``language`` into a ripgrep ``-t`` type name."""
    if not language or not language.strip():
        return None
    lowered = language.strip().lower()
    return _RIPGREP_TYPES.get(lowered, lowered)


__all__ = ["SUPPORTED_LANGUAGES", "language_extensions", "ripgrep_type"]
