from __future__ import annotations

from radialmap.core.paths import get_artifact_dir, read_manifest, update_manifest


def test_default_artifact_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("RADIALMAP_ARTIFACT_DIR", raising=False)
    assert get_artifact_dir(tmp_path) == tmp_path / ".radialmap"


def test_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("RADIALMAP_ARTIFACT_DIR", str(tmp_path / "out"))
    assert get_artifact_dir() == tmp_path / "out"


def test_manifest_accumulates_renders(tmp_path):
    (tmp_path / "a.svg").write_text("<svg/>", encoding="utf-8")
    update_manifest(tmp_path, ["a.svg"], view={"focus": "none"})
    update_manifest(tmp_path, ["gone.png", ""])

    renders = read_manifest(tmp_path)["renders"]
    assert set(renders) == {"a.svg", "gone.png"}
    assert renders["a.svg"]["bytes"] == 6
    assert renders["a.svg"]["view"] == {"focus": "none"}
    assert renders["gone.png"] == {"format": "png", "rendered_at": renders["gone.png"]["rendered_at"], "missing": True}


def test_unreadable_manifest_is_empty(tmp_path):
    (tmp_path / "manifest.json").write_text("{broken", encoding="utf-8")
    assert read_manifest(tmp_path) == {}
