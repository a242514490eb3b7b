"""Unit tests for state naming."""

import os

from pitstate.services.state.naming import context_path, image_name


class TestImageName:
    """Test content-addressed image names."""

    def test_format(self):
        """Test name is prefix, provider and md5 hex digest."""
        name = image_name("mongo", "/tmp/states/mongo/'several users'")
        assert name == "pitstate_mongo_339b8c46ccc926ca8ae09db899fb0c26"

    def test_deterministic(self):
        """Test the same provider and path always give the same name."""
        path = "/srv/fixtures/mysql/'a single user'"
        assert image_name("mysql", path) == image_name("mysql", path)

    def test_distinct_paths_give_distinct_names(self):
        """Test no collisions across a corpus of fixture paths."""
        paths = [f"/srv/states/mongo/'fixture {i}'" for i in range(500)]
        names = {image_name("mongo", p) for p in paths}
        assert len(names) == len(paths)

    def test_provider_is_part_of_name(self):
        """Test the same path under two providers differs only by provider."""
        path = "/srv/states/shared"
        mongo = image_name("mongo", path)
        mysql = image_name("mysql", path)
        assert mongo.startswith("pitstate_mongo_")
        assert mysql.startswith("pitstate_mysql_")
        assert mongo.rsplit("_", 1)[1] == mysql.rsplit("_", 1)[1]

    def test_name_depends_on_path_not_content(self):
        """Test a trailing slash alone changes the name."""
        assert image_name("mongo", "/a/b") != image_name("mongo", "/a/b/")


class TestContextPath:
    """Test fixture directory resolution."""

    def test_fixture_segment_is_single_quoted(self):
        """Test fixture names are wrapped in single quotes."""
        path = context_path("/srv/states", "mongo", "several users")
        assert path == "/srv/states/mongo/'several users'"

    def test_relative_base_dir_is_resolved(self, tmp_path, monkeypatch):
        """Test a relative base directory is made absolute."""
        monkeypatch.chdir(tmp_path)
        path = context_path("states", "mysql", "a single user")
        assert os.path.isabs(path)
        assert path == os.path.join(str(tmp_path), "states", "mysql", "'a single user'")

    def test_same_fixture_same_name(self):
        """Test naming through context_path is stable."""
        first = image_name("mongo", context_path("/srv/states", "mongo", "several users"))
        second = image_name("mongo", context_path("/srv/states", "mongo", "several users"))
        assert first == second
