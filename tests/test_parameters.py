from __future__ import annotations

import unittest

from sqlbridge.core.errors import DataAccessError, ErrorKind
from sqlbridge.core.parameters import (
    SQL_NULL,
    Direction,
    ParameterBinding,
    as_bindings,
    find_placeholders,
    normalize,
    output_bindings,
    prepare,
)


class FindPlaceholdersTests(unittest.TestCase):
    def test_distinct_case_insensitive_in_first_occurrence_order(self) -> None:
        names = find_placeholders("SELECT * FROM t WHERE a = @Name AND b = @id OR c = @name")
        self.assertEqual(names, ["Name", "id"])

    def test_skips_system_variables_and_email_text(self) -> None:
        names = find_placeholders("SELECT @@ROWCOUNT, 'me@example.com', @real")
        self.assertEqual(names, ["real"])


class NormalizeTests(unittest.TestCase):
    def test_k_placeholders_with_k_arguments(self) -> None:
        for count in range(0, 5):
            command = " AND ".join(f"c{i} = @p{i}" for i in range(count)) or "SELECT 1"
            args = list(range(count))
            text, bindings = normalize(command, args)
            self.assertEqual(text, command)
            self.assertEqual([b.name for b in bindings], [f"p{i}" for i in range(count)])
            self.assertEqual([b.value for b in bindings], args)

    def test_argument_count_mismatch(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            normalize("SELECT * FROM t WHERE a = @a AND b = @b", [1])
        self.assertIs(ctx.exception.kind, ErrorKind.ARGUMENT_COUNT_MISMATCH)

        with self.assertRaises(DataAccessError) as ctx:
            normalize("SELECT 1", [1])
        self.assertIs(ctx.exception.kind, ErrorKind.ARGUMENT_COUNT_MISMATCH)

    def test_list_argument_expands_to_indexed_bindings(self) -> None:
        text, bindings = normalize("SELECT * FROM t WHERE id IN (@ids)", [[1, 2, 3]])

        self.assertEqual(text, "SELECT * FROM t WHERE id IN (@ids0, @ids1, @ids2)")
        self.assertEqual([b.name for b in bindings], ["ids0", "ids1", "ids2"])
        self.assertEqual([b.value for b in bindings], [1, 2, 3])

    def test_expansion_rewrites_every_occurrence_case_insensitively(self) -> None:
        text, bindings = normalize("SELECT @ids AS a, @IDS AS b, @x", [(7, 8), "v"])

        self.assertEqual(text, "SELECT @ids0, @ids1 AS a, @ids0, @ids1 AS b, @x")
        self.assertEqual([b.name for b in bindings], ["ids0", "ids1", "x"])

    def test_none_binds_sql_null(self) -> None:
        _, bindings = normalize("UPDATE t SET a = @a", [None])
        self.assertIs(bindings[0].value, SQL_NULL)
        self.assertFalse(SQL_NULL)

    def test_prefix_names_collide_during_rewrite(self) -> None:
        text, _ = normalize("SELECT @id, @identifier", [[1, 2], 3])
        self.assertIn("@id0, @id1entifier", text)


class NamedBindingTests(unittest.TestCase):
    def test_output_prefix_parses_type_tag(self) -> None:
        bindings = as_bindings({"@id": 3, "name": "x", "-@total": "Int32_total"})

        self.assertEqual(
            bindings,
            [
                ParameterBinding("id", 3),
                ParameterBinding("name", "x"),
                ParameterBinding("total", None, direction=Direction.OUT, type_tag="Int32"),
            ],
        )
        self.assertEqual(bindings[2].placeholder, "@total")
        self.assertEqual([b.name for b in output_bindings(bindings)], ["total"])

    def test_output_type_tag_without_underscore(self) -> None:
        (binding,) = as_bindings({"-@flag": "Boolean"})
        self.assertTrue(binding.is_output)
        self.assertEqual(binding.type_tag, "Boolean")


class PrepareTests(unittest.TestCase):
    def test_dispatches_on_params_shape(self) -> None:
        self.assertEqual(prepare("SELECT 1"), ("SELECT 1", []))

        text, bindings = prepare("SELECT @a", {"a": 1})
        self.assertEqual((text, bindings), ("SELECT @a", [ParameterBinding("a", 1)]))

        prebuilt = [ParameterBinding("a", 2)]
        self.assertEqual(prepare("SELECT @a", prebuilt), ("SELECT @a", prebuilt))

        text, bindings = prepare("SELECT @a", [5])
        self.assertEqual(bindings, [ParameterBinding("a", 5)])

    def test_string_params_rejected(self) -> None:
        with self.assertRaises(TypeError):
            prepare("SELECT @a", "5")

    def test_missing_params_with_placeholders_is_count_mismatch(self) -> None:
        with self.assertRaises(DataAccessError) as ctx:
            prepare("SELECT @a")
        self.assertIs(ctx.exception.kind, ErrorKind.ARGUMENT_COUNT_MISMATCH)


if __name__ == "__main__":
    unittest.main()
