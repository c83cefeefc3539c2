import json
from datetime import datetime, timezone
from typing import List

import yaml

from dupreview.models.duplicate import DuplicateGroup
from dupreview.orchestration.result import ReviewResult

# Titles shown in a group heading before the list is elided
MAX_TITLES_SHOWN = 2


def group_heading(group: DuplicateGroup) -> str:
    """One-line heading: the first titles plus the file count"""
    titles = sorted(group.original_titles)
    shown = ", ".join(titles[:MAX_TITLES_SHOWN])
    if len(titles) > MAX_TITLES_SHOWN:
        shown += "..."
    return f"{shown} ({group.file_count} files)"


def can_compare(group: DuplicateGroup, max_panes: int) -> bool:
    """Whether every file of the group fits side by side"""
    return 2 <= group.file_count <= max_panes


class ReviewFormatter:
    """Renders review results for the terminal and as Markdown reports"""

    def __init__(self, max_comparison_panes: int = 3):
        self.max_comparison_panes = max_comparison_panes

    def format_text(self, result: ReviewResult) -> str:
        """Plain-text listing of the groups, numbered from 1"""
        if result.aborted:
            return f"Scan of {result.display_scope} was cancelled."

        source = " (cached)" if result.from_cache else ""
        lines = [
            f"{result.display_scope}: {len(result.groups)} duplicate groups "
            f"in {result.files_scanned} files{source}"
        ]

        for index, group in enumerate(result.groups, 1):
            marker = " [compare]" if can_compare(group, self.max_comparison_panes) else ""
            lines.append(f"{index}. {group_heading(group)}{marker}")
            for file in group.files:
                lines.append(f"     {file.path}")

        return "\n".join(lines)

    def format_json(self, result: ReviewResult) -> str:
        return json.dumps(result.to_dict(), indent=2)

    def generate_report(self, result: ReviewResult) -> str:
        """Markdown review checklist with YAML front matter"""
        now = datetime.now(timezone.utc)

        frontmatter = {
            "scope": result.scope,
            "mode": result.mode,
            "date": now.strftime("%Y-%m-%d"),
            "files_scanned": result.files_scanned,
            "duplicate_groups": len(result.groups),
            "from_cache": result.from_cache,
            "tags": ["duplicate-review"],
        }

        md_lines: List[str] = []
        md_lines.append("---")
        md_lines.append(yaml.dump(frontmatter, sort_keys=False).strip())
        md_lines.append("---\n")

        md_lines.append(f"# Duplicate Review: {result.display_scope}\n")
        md_lines.append(f"**Generated:** {now.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        md_lines.append(f"**Groups Found:** {len(result.groups)}\n")

        if not result.groups:
            md_lines.append("No duplicates found.")
            return "\n".join(md_lines)

        for index, group in enumerate(result.groups, 1):
            md_lines.append(self._format_group(group, index))

        return "\n".join(md_lines)

    def _format_group(self, group: DuplicateGroup, index: int) -> str:
        lines = [f"## {index}. {group_heading(group)}\n"]
        for file in group.files:
            # Wiki links without extension open the note in the host editor
            link = file.path[: -(len(file.extension) + 1)] if file.extension else file.path
            lines.append(f"- [ ] [[{link}|{file.basename}]]")
        lines.append("")
        return "\n".join(lines)
