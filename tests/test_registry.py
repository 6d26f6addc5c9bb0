"""Tests for table definitions, DDL rendering, and provisioning order."""

import pytest
from pydantic import ValidationError

from notifydb.exceptions import UnregisteredTableError
from notifydb.schema.models import (
    ColumnSpec,
    ColumnType,
    ForeignKeySpec,
    OnDelete,
    SqlDefault,
    TableDefinition,
)
from notifydb.schema.registry import (
    PROVISIONING_ORDER,
    TABLE_DEFINITIONS,
    TableName,
    check_provisioning_order,
    definition_for,
    expected_columns,
)


# ============================================================================
# Registry contents
# ============================================================================


class TestRegistryContents:
    """The registry holds exactly the five application tables."""

    def test_exactly_five_tables(self) -> None:
        assert set(TABLE_DEFINITIONS) == {
            "requests", "hearings", "notifications", "log_runners", "log_hits",
        }

    def test_definition_for_accepts_strings(self) -> None:
        assert definition_for("hearings") is definition_for(TableName.HEARINGS)

    def test_definition_for_unknown_raises(self) -> None:
        with pytest.raises(UnregisteredTableError) as exc_info:
            definition_for("nonexistent_table")
        assert exc_info.value.table == "nonexistent_table"
        assert "nonexistent_table" in str(exc_info.value)

    def test_unregistered_error_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            definition_for("nope")

    def test_definitions_are_frozen(self) -> None:
        with pytest.raises(ValidationError):
            definition_for("hearings").name = "other"

    def test_expected_columns(self) -> None:
        columns = expected_columns()
        assert columns["log_runners"] == {"id", "runner", "count", "error_count", "date"}
        assert columns["requests"] == {
            "created_at", "updated_at", "case_id", "phone", "known_case", "active",
        }


# ============================================================================
# Rendered DDL per table
# ============================================================================


class TestRegisteredDdl:
    """Each table renders the columns and constraints the application relies on."""

    def test_hearings(self) -> None:
        statements = definition_for("hearings").to_sql_statements()
        create = statements[0]
        assert '"defendant" varchar(100)' in create
        assert '"date" timestamptz' in create
        assert 'CONSTRAINT "hearings_pkey" PRIMARY KEY ("case_id", "date")' in create
        assert statements[1] == (
            'CREATE INDEX IF NOT EXISTS "hearings_case_id_index" ON "hearings" ("case_id")'
        )

    def test_requests(self) -> None:
        create = definition_for("requests").create_table_sql()
        assert '"created_at" timestamptz NOT NULL DEFAULT CURRENT_TIMESTAMP' in create
        assert '"updated_at" timestamptz NOT NULL DEFAULT CURRENT_TIMESTAMP' in create
        assert '"known_case" boolean DEFAULT false' in create
        assert '"active" boolean DEFAULT true' in create
        assert 'PRIMARY KEY ("case_id", "phone")' in create

    def test_notifications(self) -> None:
        create = definition_for("notifications").create_table_sql()
        assert "PRIMARY KEY" not in create
        assert (
            '"type" text CHECK ("type" IN (\'reminder\', \'matched\', \'expired\'))'
            in create
        )
        assert (
            'CONSTRAINT "notifications_case_id_phone_foreign" FOREIGN KEY ("case_id", "phone") '
            'REFERENCES "requests" ("case_id", "phone") ON DELETE CASCADE'
        ) in create
        assert '"case_id" varchar(255)' in create

    def test_log_runners(self) -> None:
        create = definition_for("log_runners").create_table_sql()
        assert '"id" serial PRIMARY KEY' in create
        assert "'send_reminder', 'send_expired', 'send_matched', 'load'" in create
        assert '"count" integer' in create
        assert '"error_count" integer' in create
        assert '"date" timestamptz DEFAULT CURRENT_TIMESTAMP' in create

    def test_log_hits(self) -> None:
        definition = definition_for("log_hits")
        assert definition.column_names == [
            "time", "path", "method", "status_code", "phone", "body", "action",
        ]
        assert definition.primary_key == ()
        assert len(definition.to_sql_statements()) == 1

    def test_schema_qualified_names(self) -> None:
        create = definition_for("notifications").create_table_sql("app")
        assert create.startswith('CREATE TABLE IF NOT EXISTS "app"."notifications"')
        assert 'REFERENCES "app"."requests"' in create

    def test_qualified_index_keeps_bare_index_name(self) -> None:
        index = definition_for("hearings").create_index_sql("app")[0]
        assert index == (
            'CREATE INDEX IF NOT EXISTS "hearings_case_id_index" ON "app"."hearings" ("case_id")'
        )


# ============================================================================
# Model validation
# ============================================================================


class TestDefinitionValidation:
    """Malformed definitions are rejected at construction."""

    def test_enum_requires_values(self) -> None:
        with pytest.raises(ValidationError):
            ColumnSpec(name="kind", type=ColumnType.ENUM)

    def test_values_only_for_enum(self) -> None:
        with pytest.raises(ValidationError):
            ColumnSpec(name="kind", type=ColumnType.STRING, enum_values=("a",))

    def test_foreign_key_arity(self) -> None:
        with pytest.raises(ValidationError):
            ForeignKeySpec(columns=("a", "b"), references_table="t", references_columns=("a",))

    def test_primary_key_must_name_columns(self) -> None:
        with pytest.raises(ValidationError):
            TableDefinition(
                name="t",
                columns=(ColumnSpec(name="a", type=ColumnType.INTEGER),),
                primary_key=("b",),
            )

    def test_literal_defaults_are_quoted(self) -> None:
        column = ColumnSpec(name="state", type=ColumnType.STRING, default="it's")
        assert column.to_sql() == "\"state\" varchar(255) DEFAULT 'it''s'"

    def test_now_default(self) -> None:
        column = ColumnSpec(name="at", type=ColumnType.TIMESTAMP, default=SqlDefault.NOW)
        assert column.to_sql() == '"at" timestamptz DEFAULT CURRENT_TIMESTAMP'

    def test_restrict_on_delete(self) -> None:
        fk = ForeignKeySpec(
            columns=("a",), references_table="p", references_columns=("id",),
            on_delete=OnDelete.RESTRICT,
        )
        assert fk.to_sql("c").endswith("ON DELETE RESTRICT")

    def test_self_reference_not_a_dependency(self) -> None:
        definition = TableDefinition(
            name="tree",
            columns=(
                ColumnSpec(name="id", type=ColumnType.INTEGER),
                ColumnSpec(name="parent_id", type=ColumnType.INTEGER),
            ),
            foreign_keys=(
                ForeignKeySpec(
                    columns=("parent_id",), references_table="tree", references_columns=("id",)
                ),
            ),
        )
        assert definition.references == set()


# ============================================================================
# Provisioning order
# ============================================================================


class TestProvisioningOrder:
    """Every table comes after the tables it references."""

    def test_default_order(self) -> None:
        assert [str(t) for t in PROVISIONING_ORDER] == [
            "requests", "hearings", "notifications", "log_runners", "log_hits",
        ]

    def test_every_reference_precedes_referrer(self) -> None:
        position = {t: i for i, t in enumerate(PROVISIONING_ORDER)}
        for table in PROVISIONING_ORDER:
            for referenced in definition_for(table).references:
                assert position[TableName(referenced)] < position[table]

    def test_independent_tables_may_be_reordered(self) -> None:
        order = ["log_hits", "hearings", "requests", "log_runners", "notifications"]
        assert check_provisioning_order(order) == [TableName(t) for t in order]

    def test_referrer_first_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="requests"):
            check_provisioning_order(["notifications", "requests"])

    def test_missing_referenced_table_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            check_provisioning_order(["hearings", "notifications"])

    def test_duplicates_rejected(self) -> None:
        with pytest.raises(ValueError, match="more than once"):
            check_provisioning_order(["requests", "requests"])

    def test_unknown_table_rejected(self) -> None:
        with pytest.raises(UnregisteredTableError):
            check_provisioning_order(["requests", "users"])
