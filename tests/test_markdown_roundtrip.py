"""Markdown import followed by export through the document service."""

from __future__ import annotations

from blocktree.markdown.parser import DEPTH_WARNING, FLATTENED_WARNING
from blocktree.service import DocumentService

from conftest import WORKSPACE

SOURCE = """# Project Notes

Intro with **bold**, *italic* and `code` text.

- first bullet
- second bullet

Numbered steps follow.

1. step one
1. step two

Tasks follow.

- [x] shipped
- [ ] pending

> quoted line

```python
print("hi")
```

---

[Example](https://example.com)

| Name | Value |
| --- | --- |
| a | 1 |"""


class TestRoundTrip:
    """Supported constructs survive import then export unchanged."""

    def test_lossless_round_trip(self, service: DocumentService) -> None:
        imported = service.import_markdown(WORKSPACE, markdown=SOURCE)
        assert imported.parse.lossy is False

        exported = service.export_markdown(WORKSPACE, imported.doc_id)
        assert exported.markdown == SOURCE
        assert exported.warnings == []

    def test_reimport_is_stable(self, service: DocumentService) -> None:
        first = service.import_markdown(WORKSPACE, markdown=SOURCE)
        markdown = service.export_markdown(WORKSPACE, first.doc_id).markdown
        second = service.import_markdown(WORKSPACE, markdown=markdown)
        assert [op.to_dict() for op in second.parse.operations] == [
            op.to_dict() for op in first.parse.operations
        ]

    def test_nested_list_flattened(self, service: DocumentService) -> None:
        imported = service.import_markdown(WORKSPACE, markdown="- parent\n  - child")
        assert imported.parse.lossy is True
        assert set(imported.parse.warnings) == {FLATTENED_WARNING, DEPTH_WARNING}

        exported = service.export_markdown(WORKSPACE, imported.doc_id)
        assert exported.markdown == "- parent\n- child"
