from __future__ import annotations

from typing import List

from .metrics import list_counters, list_counters_labelled


def _escape_label_value(val: str) -> str:
    return val.replace("\\", "\\\\").replace("\"", "\\\"").replace("\n", "\\n")


def export_text(prefix: str = "") -> str:
    """Render bot counters in Prometheus text exposition format.

    Zero-valued counters are skipped. Each metric name gets one `# TYPE` line,
    shared by its unlabelled and labelled series.
    """
    lines: List[str] = []
    emitted_type: set[str] = set()

    def _type_line(name: str) -> None:
        if name not in emitted_type:
            lines.append(f"# TYPE {name} counter")
            emitted_type.add(name)

    for name, val in list_counters():
        if val == 0:
            continue
        full = prefix + name
        _type_line(full)
        lines.append(f"{full} {val}")

    for name, labels, val in list_counters_labelled():
        if val == 0:
            continue
        full = prefix + name
        _type_line(full)
        label_str = ",".join(f"{k}=\"{_escape_label_value(v)}\"" for k, v in labels)
        lines.append(f"{full}{{{label_str}}} {val}")

    return "\n".join(lines) + ("\n" if lines else "")
