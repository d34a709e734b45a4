"""Table definitions for org-sql.

Every row derived from an org file hangs off ``files.file_path`` through
cascading foreign keys, so renaming or deleting a ``files`` row renames or
deletes everything mapped from that file.
"""

from org_sql.schema.registry import Column, ColumnType, ForeignKey, Schema, Table

BOOLEAN = ColumnType.BOOLEAN
ENUM = ColumnType.ENUM
INTEGER = ColumnType.INTEGER
TEXT = ColumnType.TEXT

TIME_UNITS = ("hour", "day", "week", "month", "year")
PLANNING_TYPES = ("closed", "deadline", "scheduled")
REPEAT_TYPES = ("catch-up", "restart", "cumulate")
WARNING_TYPES = ("all", "first")


def _file_path() -> Column:
    return Column(
        name="file_path",
        type=TEXT,
        description="path to the org file",
        not_null=True,
    )


def _headline_offset() -> Column:
    return Column(
        name="headline_offset",
        type=INTEGER,
        description="offset of the headline this row belongs to",
        not_null=True,
    )


def _to_file() -> ForeignKey:
    return ForeignKey(columns=("file_path",), parent="files", parent_columns=("file_path",))


def _to_headline(column: str = "headline_offset") -> ForeignKey:
    return ForeignKey(
        columns=("file_path", column),
        parent="headlines",
        parent_columns=("file_path", "headline_offset"),
    )


def _to_timestamp() -> ForeignKey:
    return ForeignKey(
        columns=("file_path", "timestamp_offset"),
        parent="timestamps",
        parent_columns=("file_path", "timestamp_offset"),
    )


def _to_entry() -> ForeignKey:
    return ForeignKey(
        columns=("file_path", "entry_offset"),
        parent="logbook_entries",
        parent_columns=("file_path", "entry_offset"),
    )


FILES = Table(
    name="files",
    description="each row describes one org file",
    columns=(
        _file_path(),
        Column(name="md5", type=TEXT, description="hash of the file contents", not_null=True),
        Column(name="size", type=INTEGER, description="size of the file in bytes", not_null=True),
    ),
    primary_key=("file_path",),
)

HEADLINES = Table(
    name="headlines",
    description="each row describes one headline in an org file",
    columns=(
        _file_path(),
        _headline_offset(),
        Column(name="headline_text", type=TEXT, description="raw text of the headline", not_null=True),
        Column(name="keyword", type=TEXT, description="the TODO state keyword"),
        Column(name="effort", type=INTEGER, description="the value of the Effort property in minutes"),
        Column(name="priority", type=TEXT, description="character value of the priority"),
        Column(name="is_archived", type=BOOLEAN, description="true if the headline has an archive tag", not_null=True),
        Column(name="is_commented", type=BOOLEAN, description="true if the headline has a comment keyword", not_null=True),
        Column(name="content", type=TEXT, description="the headline contents"),
    ),
    primary_key=("file_path", "headline_offset"),
    foreign_keys=(_to_file(),),
)

HEADLINE_CLOSURES = Table(
    name="headline_closures",
    description="each row describes one ancestor of a headline",
    columns=(
        _file_path(),
        _headline_offset(),
        Column(name="parent_offset", type=INTEGER, description="offset of the ancestor headline", not_null=True),
        Column(name="depth", type=INTEGER, description="levels between the headline and the ancestor"),
    ),
    primary_key=("file_path", "headline_offset", "parent_offset"),
    foreign_keys=(_to_headline(), _to_headline("parent_offset")),
)

TIMESTAMPS = Table(
    name="timestamps",
    description="each row describes one timestamp",
    columns=(
        _file_path(),
        Column(name="timestamp_offset", type=INTEGER, description="offset of the timestamp", not_null=True),
        _headline_offset(),
        Column(name="raw_value", type=TEXT, description="text representation of the timestamp", not_null=True),
        Column(name="is_active", type=BOOLEAN, description="true if the timestamp is active", not_null=True),
        Column(name="warning_type", type=ENUM, description="type of the warning", allowed=WARNING_TYPES),
        Column(name="warning_value", type=INTEGER, description="shift of the warning"),
        Column(name="warning_unit", type=ENUM, description="unit of the warning", allowed=TIME_UNITS),
        Column(name="repeat_type", type=ENUM, description="type of the repeater", allowed=REPEAT_TYPES),
        Column(name="repeat_value", type=INTEGER, description="shift of the repeater"),
        Column(name="repeat_unit", type=ENUM, description="unit of the repeater", allowed=TIME_UNITS),
        Column(name="time_start", type=INTEGER, description="start time in epoch seconds", not_null=True),
        Column(name="start_is_long", type=BOOLEAN, description="true if the start has a time of day", not_null=True),
        Column(name="time_end", type=INTEGER, description="end time in epoch seconds"),
        Column(name="end_is_long", type=BOOLEAN, description="true if the end has a time of day"),
    ),
    primary_key=("file_path", "timestamp_offset"),
    foreign_keys=(_to_headline(),),
)

PLANNING_ENTRIES = Table(
    name="planning_entries",
    description="each row links a headline to a planning timestamp",
    columns=(
        _file_path(),
        _headline_offset(),
        Column(name="planning_type", type=ENUM, description="the planning keyword", not_null=True, allowed=PLANNING_TYPES),
        Column(name="timestamp_offset", type=INTEGER, description="offset of the planning timestamp", not_null=True),
    ),
    primary_key=("file_path", "headline_offset", "planning_type"),
    foreign_keys=(_to_headline(), _to_timestamp()),
)

FILE_TAGS = Table(
    name="file_tags",
    description="each row is one tag set for a whole file",
    columns=(
        _file_path(),
        Column(name="tag", type=TEXT, description="the text value of the tag", not_null=True),
    ),
    primary_key=("file_path", "tag"),
    foreign_keys=(_to_file(),),
)

HEADLINE_TAGS = Table(
    name="headline_tags",
    description="each row is one tag of a headline",
    columns=(
        _file_path(),
        _headline_offset(),
        Column(name="tag", type=TEXT, description="the text value of the tag", not_null=True),
        Column(name="is_inherited", type=BOOLEAN, description="true if the tag is inherited", not_null=True),
    ),
    primary_key=("file_path", "headline_offset", "tag"),
    foreign_keys=(_to_headline(),),
)

PROPERTIES = Table(
    name="properties",
    description="each row is one property",
    columns=(
        _file_path(),
        Column(name="property_offset", type=INTEGER, description="offset of the property", not_null=True),
        Column(name="key_text", type=TEXT, description="the property key", not_null=True),
        Column(name="val_text", type=TEXT, description="the property value", not_null=True),
    ),
    primary_key=("file_path", "property_offset"),
    foreign_keys=(_to_file(),),
)

FILE_PROPERTIES = Table(
    name="file_properties",
    description="each row links a property to its file",
    columns=(
        _file_path(),
        Column(name="property_offset", type=INTEGER, description="offset of the property", not_null=True),
    ),
    primary_key=("file_path", "property_offset"),
    foreign_keys=(
        _to_file(),
        ForeignKey(
            columns=("file_path", "property_offset"),
            parent="properties",
            parent_columns=("file_path", "property_offset"),
        ),
    ),
)

HEADLINE_PROPERTIES = Table(
    name="headline_properties",
    description="each row links a property to its headline",
    columns=(
        _file_path(),
        Column(name="property_offset", type=INTEGER, description="offset of the property", not_null=True),
        _headline_offset(),
    ),
    primary_key=("file_path", "property_offset"),
    foreign_keys=(
        ForeignKey(
            columns=("file_path", "property_offset"),
            parent="properties",
            parent_columns=("file_path", "property_offset"),
        ),
        _to_headline(),
    ),
)

LINKS = Table(
    name="links",
    description="each row describes one link",
    columns=(
        _file_path(),
        Column(name="link_offset", type=INTEGER, description="offset of the link", not_null=True),
        _headline_offset(),
        Column(name="link_path", type=TEXT, description="target of the link", not_null=True),
        Column(name="link_text", type=TEXT, description="description of the link"),
        Column(name="link_type", type=TEXT, description="type of the link", not_null=True),
    ),
    primary_key=("file_path", "link_offset"),
    foreign_keys=(_to_headline(),),
)

CLOCKING = Table(
    name="clocking",
    description="each row describes one clock entry",
    columns=(
        _file_path(),
        Column(name="clock_offset", type=INTEGER, description="offset of the clock line", not_null=True),
        _headline_offset(),
        Column(name="time_start", type=INTEGER, description="clock start in epoch seconds"),
        Column(name="time_end", type=INTEGER, description="clock end in epoch seconds, null if running"),
        Column(name="clock_note", type=TEXT, description="note attached to the clock"),
    ),
    primary_key=("file_path", "clock_offset"),
    foreign_keys=(_to_headline(),),
)

LOGBOOK_ENTRIES = Table(
    name="logbook_entries",
    description="each row describes one logbook item",
    columns=(
        _file_path(),
        Column(name="entry_offset", type=INTEGER, description="offset of the logbook item", not_null=True),
        _headline_offset(),
        Column(name="entry_type", type=TEXT, description="type of the entry", not_null=True),
        Column(name="time_logged", type=INTEGER, description="when the entry was logged in epoch seconds"),
        Column(name="header", type=TEXT, description="first line of the entry"),
        Column(name="note", type=TEXT, description="text below the header"),
    ),
    primary_key=("file_path", "entry_offset"),
    foreign_keys=(_to_headline(),),
)

STATE_CHANGES = Table(
    name="state_changes",
    description="each row describes a TODO keyword change",
    columns=(
        _file_path(),
        Column(name="entry_offset", type=INTEGER, description="offset of the logbook entry", not_null=True),
        Column(name="state_old", type=TEXT, description="former keyword"),
        Column(name="state_new", type=TEXT, description="updated keyword"),
    ),
    primary_key=("file_path", "entry_offset"),
    foreign_keys=(_to_entry(),),
)

PLANNING_CHANGES = Table(
    name="planning_changes",
    description="each row describes a change to a planning timestamp",
    columns=(
        _file_path(),
        Column(name="entry_offset", type=INTEGER, description="offset of the logbook entry", not_null=True),
        Column(name="timestamp_offset", type=INTEGER, description="offset of the former timestamp", not_null=True),
    ),
    primary_key=("file_path", "entry_offset", "timestamp_offset"),
    foreign_keys=(_to_entry(), _to_timestamp()),
)

SCHEMA = Schema(
    tables=(
        FILES,
        HEADLINES,
        HEADLINE_CLOSURES,
        TIMESTAMPS,
        PLANNING_ENTRIES,
        FILE_TAGS,
        HEADLINE_TAGS,
        PROPERTIES,
        FILE_PROPERTIES,
        HEADLINE_PROPERTIES,
        LINKS,
        CLOCKING,
        LOGBOOK_ENTRIES,
        STATE_CHANGES,
        PLANNING_CHANGES,
    )
)
