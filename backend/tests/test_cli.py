# Overview: Pytest coverage for the storage CLI group.

import json

from tests.conftest import make_product


def test_status(app):
    result = app.test_cli_runner().invoke(args=["storage", "status"])

    assert result.exit_code == 0
    assert "Backend: folder (folder-not-selected)" in result.output
    assert "products: 0 records" in result.output
    assert "billing_products: 2 bytes" in result.output


def test_export_then_import(app, tmp_path):
    with app.app_context():
        app.extensions["billing_storage"].products.add(make_product("CLI-1"))

    runner = app.test_cli_runner()
    out_dir = tmp_path / "export"
    result = runner.invoke(args=["storage", "export", "--out", str(out_dir)])

    assert result.exit_code == 0
    assert json.loads((out_dir / "products.json").read_text())[0]["barcode"] == "CLI-1"
    assert json.loads((out_dir / "expenses.json").read_text()) == []

    (out_dir / "products.json").write_text(json.dumps([make_product("CLI-2")]), encoding="utf-8")
    result = runner.invoke(args=["storage", "import", str(out_dir / "products.json")])

    assert result.exit_code == 0
    assert "Imported 1 records into products" in result.output
    with app.app_context():
        assert [p["barcode"] for p in app.extensions["billing_storage"].products.get_all()] == ["CLI-2"]


def test_import_rejects_unknown_file_name(app, tmp_path):
    path = tmp_path / "data.json"
    path.write_text("[]", encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["storage", "import", str(path)])

    assert result.exit_code != 0
