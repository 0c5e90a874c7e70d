"""Unit tests for Dart lexical scanning."""

from ffsync.dart import (
    format_dart_code,
    get_top_level_names,
    mask_comments_and_strings,
    parse_top_level_declarations,
    parse_top_level_functions,
)


class TestMasking:
    """Tests for mask_comments_and_strings."""

    def test_preserves_length_and_lines(self):
        text = "// a { comment\nvar s = '}';\n/* block\n */ int x;"
        masked = mask_comments_and_strings(text)
        assert len(masked) == len(text)
        assert masked.count("\n") == text.count("\n")
        assert "{" not in masked
        assert "}" not in masked
        assert "int x;" in masked

    def test_keep_strings(self):
        text = "export 'a.dart'; // note"
        masked = mask_comments_and_strings(text, mask_strings=False)
        assert masked.startswith("export 'a.dart';")
        assert "note" not in masked

    def test_escaped_quote(self):
        text = "var s = 'it\\'s {'; int y;"
        assert get_top_level_names(text) == ["s", "y"]

    def test_triple_quoted_string(self):
        text = 'var s = """\n}\n""";\nint y;'
        assert get_top_level_names(text) == ["s", "y"]


class TestTopLevelNames:
    """Tests for get_top_level_names."""

    def test_mixed_declarations(self):
        source = """
import 'package:flutter/material.dart';

abstract class Shape {}
mixin Walker {}
enum Color { red, green }
extension StringX on String {
  String shout() => toUpperCase();
}
typedef Callback = void Function(int);
const int maxItems = 10;
String get greeting => 'hi';
Future<void> sendEmail(String to) async {
  if (to.isEmpty) {
    return;
  }
}
late String name;
"""
        assert get_top_level_names(source) == [
            "Shape",
            "Walker",
            "Color",
            "StringX",
            "Callback",
            "maxItems",
            "greeting",
            "sendEmail",
            "name",
        ]

    def test_widget_file(self):
        source = """
class FancyButton extends StatefulWidget {
  const FancyButton({super.key, this.width = 10});
  final double width;
  @override
  State<FancyButton> createState() => _FancyButtonState();
}

class _FancyButtonState extends State<FancyButton> {
  @override
  Widget build(BuildContext context) {
    return Container();
  }
}
"""
        assert get_top_level_names(source) == ["FancyButton", "_FancyButtonState"]

    def test_annotated_function(self):
        source = "@pragma('vm:entry-point')\nvoid main() {}\n"
        assert get_top_level_names(source) == ["main"]

    def test_generic_function(self):
        assert get_top_level_names("T first<T>(List<T> xs) => xs[0];") == ["first"]

    def test_function_typed_variable(self):
        source = "void Function(int) callback = (x) {};"
        assert get_top_level_names(source) == ["callback"]

    def test_unnamed_extension_skipped(self):
        assert get_top_level_names("extension on String {}\nint x = 1;") == ["x"]

    def test_commented_out_code_ignored(self):
        source = "// class Hidden {}\n/* void gone() {} */\nvoid shown() {}\n"
        assert get_top_level_names(source) == ["shown"]

    def test_empty_source(self):
        assert get_top_level_names("") == []

    def test_declaration_kinds(self):
        kinds = [
            d.kind
            for d in parse_top_level_declarations(
                "class A {}\nint b() => 1;\nint get c => 2;\nfinal d = 3;"
            )
        ]
        assert kinds == ["class", "function", "getter", "variable"]


class TestTopLevelFunctions:
    """Tests for parse_top_level_functions."""

    def test_body_excludes_name(self):
        functions = parse_top_level_functions(
            "int add(int a, int b) {\n  return a + b;\n}\n"
        )
        assert [f.name for f in functions] == ["add"]
        assert functions[0].body == "int (int a, int b) {\n  return a + b;\n}"

    def test_renamed_function_has_same_body(self):
        before = parse_top_level_functions("int twice(int x) => x * 2;")
        after = parse_top_level_functions("int doubled(int x) => x * 2;")
        assert before[0].body == after[0].body

    def test_classes_and_variables_skipped(self):
        source = "class A {}\nfinal b = 1;\nint c() => 2;\n"
        assert [f.name for f in parse_top_level_functions(source)] == ["c"]


class TestFormatDartCode:
    """Tests for format_dart_code."""

    def test_normalizes_spacing(self):
        assert format_dart_code("export 'a.dart'   show  A ,B;") == (
            "export 'a.dart' show A, B;\n"
        )

    def test_one_directive_per_line(self):
        source = "export 'a.dart' show A; export 'b.dart' show B;"
        assert format_dart_code(source) == (
            "export 'a.dart' show A;\nexport 'b.dart' show B;\n"
        )

    def test_combinator_moves_to_own_line(self):
        assert format_dart_code("export 'a.dart' show Alpha, Beta;", line_length=30) == (
            "export 'a.dart'\n    show Alpha, Beta;\n"
        )

    def test_names_split_when_combinator_too_long(self):
        assert format_dart_code("export 'a.dart' show Alpha, Beta;", line_length=20) == (
            "export 'a.dart'\n    show\n        Alpha,\n        Beta;\n"
        )

    def test_comments_kept(self):
        source = "// header\nexport 'a.dart' show A;"
        assert format_dart_code(source) == "// header\nexport 'a.dart' show A;\n"

    def test_empty_source(self):
        assert format_dart_code("") == ""
        assert format_dart_code("  \n") == ""

    def test_idempotent(self):
        once = format_dart_code("export 'a.dart' show Alpha, Beta;", line_length=20)
        assert format_dart_code(once, line_length=20) == once
