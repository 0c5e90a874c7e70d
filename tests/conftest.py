"""Shared fixtures: a minimal downloaded FlutterFlow project."""

from pathlib import Path

import pytest

FETCH_DATA = """Future<String> fetchData() async {
  return 'data';
}
"""

FANCY_BUTTON = """class FancyButton extends StatelessWidget {
  const FancyButton({super.key});
}
"""

CUSTOM_FUNCTIONS = """int twice(int x) {
  return x * 2;
}
"""


def write_file(root: Path, relative: str, content: str) -> Path:
    """Write a file below ``root``, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path):
    """Project root with one action, one widget, one helper and functions."""
    root = tmp_path.resolve()
    write_file(root, "pubspec.yaml", "name: app\n")
    write_file(root, "lib/flutter_flow/custom_functions.dart", CUSTOM_FUNCTIONS)
    write_file(root, "lib/custom_code/actions/fetch_data.dart", FETCH_DATA)
    write_file(
        root,
        "lib/custom_code/actions/index.dart",
        "export 'fetch_data.dart' show fetchData;\n",
    )
    write_file(root, "lib/custom_code/widgets/fancy_button.dart", FANCY_BUTTON)
    write_file(
        root,
        "lib/custom_code/widgets/index.dart",
        "export 'fancy_button.dart' show FancyButton;\n",
    )
    write_file(
        root,
        "lib/custom_code/helpers/format.dart",
        "String formatName(String n) => n.trim();\n",
    )
    write_file(
        root,
        ".vscode/ff_metadata.json",
        '{"project_id": "proj-1", "branch_name": ""}',
    )
    return root
