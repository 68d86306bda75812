import json

import pytest

from conftest import mapping_artifact, raw_sets_a, raw_sets_b
from pokebridge import __main__ as pokebridge_main
from pokebridge.arg_parser import parse_args
from pokebridge.bridge_config import ENVIRONMENT_OVERRIDES
from pokebridge.set_mapping_builder import write_artifact


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for env_name in ENVIRONMENT_OVERRIDES.values():
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.setattr(pokebridge_main, "init_logger", lambda: None)

    artifact_path = tmp_path.joinpath("set_mapping.json")
    path = tmp_path.joinpath("pokebridge.properties")
    path.write_text(
        "[Cache]\nenabled=false\n\n"
        f"[SetMapping]\nartifact_path={artifact_path}\n\n"
        "[Http]\nretries=0\n",
        encoding="utf-8",
    )
    return path


def test_action_is_required():
    with pytest.raises(SystemExit):
        parse_args([])


def test_version(capsys):
    with pytest.raises(SystemExit):
        parse_args(["--version"])
    assert capsys.readouterr().out.startswith("pokebridge ")


def test_catalog_files_go_together(tmp_path):
    with pytest.raises(SystemExit):
        parse_args(["--build-set-mapping", "--catalog-a-sets", str(tmp_path.joinpath("a.json"))])


def test_build_set_mapping_from_files(config_file, catalog_files, capsys):
    catalog_a_path = catalog_files["write"]("sets_a.json", {"data": raw_sets_a()})
    catalog_b_path = catalog_files["write"]("sets_b.json", raw_sets_b())
    output_path = catalog_files["dir"].joinpath("out", "mapping.json")

    exit_code = pokebridge_main.main(
        [
            "--config", str(config_file),
            "--build-set-mapping",
            "--catalog-a-sets", str(catalog_a_path),
            "--catalog-b-sets", str(catalog_b_path),
            "--output", str(output_path),
        ]
    )

    assert exit_code == 0
    metadata = json.loads(capsys.readouterr().out)
    assert metadata["totalMappings"] == 2
    assert metadata["unmappedA"] == 1
    assert metadata["unmappedB"] == 1

    artifact = json.loads(output_path.read_text(encoding="utf-8"))
    assert artifact["mappings"]["sv1"]["catalogBSetId"] == 510
    assert artifact["mappings"]["sv1"]["matchType"] == "manual"
    assert artifact["mappings"]["sv2"]["catalogBSetId"] == 513
    assert artifact["mappings"]["sv2"]["matchType"] == "exact_name"
    assert [unmapped["id"] for unmapped in artifact["unmapped"]["catalogB"]] == [900]


def test_malformed_catalog_file_fails(config_file, catalog_files, capsys):
    catalog_a_path = catalog_files["write"]("sets_a.json", {"data": raw_sets_a()})
    catalog_b_path = catalog_files["dir"].joinpath("sets_b.json")
    catalog_b_path.write_text("not json", encoding="utf-8")

    exit_code = pokebridge_main.main(
        [
            "--config", str(config_file),
            "--build-set-mapping",
            "--catalog-a-sets", str(catalog_a_path),
            "--catalog-b-sets", str(catalog_b_path),
        ]
    )

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_mapping_stats_and_unmapped(config_file, tmp_path, capsys):
    write_artifact(mapping_artifact(), tmp_path.joinpath("set_mapping.json"))

    assert pokebridge_main.main(["--config", str(config_file), "--mapping-stats"]) == 0
    assert json.loads(capsys.readouterr().out)["totalMappings"] == 1

    assert pokebridge_main.main(["--config", str(config_file), "--unmapped", "catalogB"]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_bad_paging_fails(config_file):
    assert (
        pokebridge_main.main(
            ["--config", str(config_file), "--set-cards", "sv1", "--page", "0"]
        )
        == 1
    )
