"""fstab rewriter: parse /etc/fstab, recommend conservative mount options, merge, render.

Pure functions only. Nothing here touches the filesystem or raises on odd
input: a line that cannot be parsed is carried through verbatim.
"""

from typing import Iterable, Iterator, List, Set, Union

from .schema import MountEntry, MountTable, OpaqueLine

BTRFS_COMPRESSION = "compress=zstd:3"

# Option keys that may appear at most once on an entry.
_SINGULAR_KEYS = frozenset({"compress"})


def _option_key(option: str) -> str:
    return option.split("=", 1)[0]


def _is_structural(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def _split_options(field: str) -> List[str]:
    seen: List[str] = []
    for opt in field.split(","):
        if opt and opt not in seen:
            seen.append(opt)
    return seen


def parse_line(line: str, line_no: int = 0) -> Union[MountEntry, OpaqueLine]:
    """Parse one fstab line. Malformed lines come back as opaque."""
    if _is_structural(line):
        return OpaqueLine(text=line, line_no=line_no)

    fields = line.split()
    if len(fields) < 3 or len(fields) > 6:
        return OpaqueLine(text=line, malformed=True, line_no=line_no)

    try:
        dump_freq = int(fields[4]) if len(fields) > 4 else 0
        pass_no = int(fields[5]) if len(fields) > 5 else 0
    except ValueError:
        return OpaqueLine(text=line, malformed=True, line_no=line_no)

    return MountEntry(
        source=fields[0],
        target=fields[1],
        fs_type=fields[2],
        options=_split_options(fields[3]) if len(fields) > 3 else [],
        dump_freq=dump_freq,
        pass_no=pass_no,
        raw=line,
        line_no=line_no,
    )


def parse_fstab(text: str) -> MountTable:
    """Parse mount table text. Line count and order are preserved exactly."""
    if not text:
        return MountTable(lines=[], trailing_newline=False)
    raw_lines = text.split("\n")
    trailing = raw_lines[-1] == ""
    if trailing:
        raw_lines.pop()
    return MountTable(
        lines=[parse_line(line, i) for i, line in enumerate(raw_lines, 1)],
        trailing_newline=trailing,
    )


def render_entry(entry: MountEntry) -> str:
    """Render an entry: verbatim when untouched, tab-delimited once rewritten."""
    if entry.raw is not None:
        return entry.raw
    return "\t".join([
        entry.source,
        entry.target,
        entry.fs_type,
        ",".join(sorted(entry.options)),
        str(entry.dump_freq),
        str(entry.pass_no),
    ])


def render_fstab(table: MountTable) -> str:
    out = [
        render_entry(ln) if isinstance(ln, MountEntry) else ln.text
        for ln in table.lines
    ]
    text = "\n".join(out)
    if table.trailing_newline and out:
        text += "\n"
    return text


def recommend_options(fs_type: str, existing_options: Iterable[str]) -> Set[str]:
    """Options worth adding to an entry of *fs_type*; empty means leave it alone.

    ext4 never gets ``discard``: fstrim.timer handles TRIM on a schedule.
    """
    if fs_type == "btrfs":
        add = {"noatime"}
        if not any(o.startswith("compress=") for o in existing_options):
            add.add(BTRFS_COMPRESSION)
        return add
    if fs_type == "ext4":
        return {"noatime"}
    return set()


def merge_options(existing: Iterable[str], to_add: Iterable[str]) -> List[str]:
    """Merge *to_add* into *existing*; the result is unique and sorted.

    A ``key=value`` addition for a singular key evicts every existing option
    with that key, bare flag included.
    """
    merged: List[str] = []
    for opt in existing:
        if opt and opt not in merged:
            merged.append(opt)
    for opt in sorted(set(to_add)):
        if not opt:
            continue
        key = _option_key(opt)
        if "=" in opt and key in _SINGULAR_KEYS:
            merged = [o for o in merged if _option_key(o) != key]
        if opt not in merged:
            merged.append(opt)
    return sorted(merged)


def _as_opaque(entry: MountEntry) -> OpaqueLine:
    return OpaqueLine(text=render_entry(entry), malformed=True, line_no=entry.line_no)


def transform_entry(entry: MountEntry) -> Union[MountEntry, OpaqueLine]:
    if not entry.source or not entry.target or not entry.fs_type:
        return _as_opaque(entry)
    to_add = recommend_options(entry.fs_type, entry.options)
    if not to_add:
        return entry.model_copy(deep=True)
    return entry.model_copy(
        update={
            "options": merge_options(entry.options, to_add),
            "raw": None,
        },
        deep=True,
    )


def transform(table: MountTable) -> MountTable:
    """Return a new table with recommended options merged in. *table* is left untouched."""
    lines: List[Union[MountEntry, OpaqueLine]] = []
    for ln in table.lines:
        if isinstance(ln, MountEntry):
            lines.append(transform_entry(ln))
        else:
            lines.append(ln.model_copy())
    return MountTable(lines=lines, trailing_newline=table.trailing_newline)


def rewrite(text: str) -> str:
    """parse → transform → render in one call."""
    return render_fstab(transform(parse_fstab(text)))


def iter_malformed(table: MountTable) -> Iterator[OpaqueLine]:
    for ln in table.lines:
        if isinstance(ln, OpaqueLine) and ln.malformed:
            yield ln


def changed_targets(before: MountTable, after: MountTable) -> List[str]:
    """Mount points whose option set differs between two aligned tables.

    A re-rendered line with the same options (whitespace only) is not a change.
    """
    changed: List[str] = []
    for old, new in zip(before.lines, after.lines):
        if not isinstance(old, MountEntry) or not isinstance(new, MountEntry):
            continue
        if set(old.options) != set(new.options):
            changed.append(old.target)
    return changed

