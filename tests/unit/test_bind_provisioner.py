# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for bind provisioning.
"""
import os
import pytest
from extdock.MANAGERS.bind_provisioner import BindProvisioner
from extdock.MODELS.image_descriptor import BindProperties, ResolvedVolume


class TestBindProvisioner:
    """Tests for BindProvisioner."""

    def test_provision_creates_dir_and_file(self, tmp_path, gateway):
        """Test that every absolute bind gets a directory and an empty file."""
        provisioner = BindProvisioner(gateway)
        props = BindProperties(root=str(tmp_path))
        config = {}

        added = provisioner.provision(config, props, ["/data/db", "/etc/app/app.conf"])

        assert added == 2
        assert os.path.isdir(tmp_path / "data")
        assert os.path.isfile(tmp_path / "data" / "db")
        assert os.path.getsize(tmp_path / "data" / "db") == 0
        assert os.path.isfile(tmp_path / "etc" / "app" / "app.conf")

        binds = config["HostConfig"]["Binds"]
        assert len(binds) == 2
        assert f"{tmp_path}/data/db:/data/db" in binds
        assert config["Volumes"] == {"/data/db": {}, "/etc/app/app.conf": {}}

    def test_last_declared_bind_first(self, tmp_path, gateway):
        """Test that binds are processed from last to first."""
        provisioner = BindProvisioner(gateway)
        config = {}
        provisioner.provision(config, BindProperties(root=str(tmp_path)), ["/a/one", "/b/two"])
        assert config["HostConfig"]["Binds"] == [
            f"{tmp_path}/b/two:/b/two",
            f"{tmp_path}/a/one:/a/one",
        ]

    def test_relative_binds_skipped(self, tmp_path, gateway):
        """Test that relative binds create nothing."""
        provisioner = BindProvisioner(gateway)
        config = {}
        added = provisioner.provision(config, BindProperties(root=str(tmp_path)), ["data/db", "/data/log"])
        assert added == 1
        assert config["HostConfig"]["Binds"] == [f"{tmp_path}/data/log:/data/log"]
        assert os.path.isfile(tmp_path / "data" / "log")
        assert not os.path.exists(str(tmp_path) + "data")

    def test_binds_path_prefix(self, tmp_path, gateway):
        """Test that the binds sub-path is placed below the root."""
        provisioner = BindProvisioner(gateway)
        config = {}
        provisioner.provision(config, BindProperties(root=str(tmp_path), binds_path="/binds"), ["/data/db"])
        assert os.path.isfile(tmp_path / "binds" / "data" / "db")
        assert config["HostConfig"]["Binds"] == [f"{tmp_path}/binds/data/db:/data/db"]

    def test_provision_idempotent(self, tmp_path, gateway):
        """Test that existing files are never overwritten."""
        provisioner = BindProvisioner(gateway)
        props = BindProperties(root=str(tmp_path))
        provisioner.provision({}, props, ["/data/db"])

        (tmp_path / "data" / "db").write_text("keep me")
        config = {}
        provisioner.provision(config, props, ["/data/db"])

        assert (tmp_path / "data" / "db").read_text() == "keep me"
        assert config["HostConfig"]["Binds"] == [f"{tmp_path}/data/db:/data/db"]

    def test_existing_config_sections_are_extended(self, tmp_path, gateway):
        """Test that binds are appended to an existing HostConfig."""
        provisioner = BindProvisioner(gateway)
        config = {"HostConfig": {"Binds": ["/host:/container"]}}
        provisioner.provision(config, BindProperties(root=str(tmp_path)), ["/data/db"])
        assert config["HostConfig"]["Binds"][0] == "/host:/container"
        assert len(config["HostConfig"]["Binds"]) == 2

    def test_io_error_propagates(self, tmp_path, gateway):
        """Test that a genuine filesystem error aborts provisioning."""
        provisioner = BindProvisioner(gateway)
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "db").mkdir()

        with pytest.raises(OSError):
            provisioner.provision({}, BindProperties(root=str(tmp_path)), ["/data/db"])

    def test_volume_source_used_for_binds(self, tmp_path, gateway):
        """Test that a reused volume provides the bind sources."""
        provisioner = BindProvisioner(gateway)
        props = BindProperties(root=str(tmp_path), binds_path="/binds",
                               volume=ResolvedVolume(source="/var/lib/docker/volumes/ext/_data/", name="ext"))
        config = {}
        provisioner.provision(config, props, ["/data/db"])

        assert os.path.isfile(tmp_path / "binds" / "data" / "db")
        assert config["HostConfig"]["Binds"] == [
            "/var/lib/docker/volumes/ext/_data//binds/data/db:/data/db"
        ]

    def test_mount_volume_read_only(self, tmp_path, gateway):
        """Test that the volume is mounted read-only at the bind root."""
        provisioner = BindProvisioner(gateway)
        props = BindProperties(root=str(tmp_path), volume=ResolvedVolume(source="/v/", name="ext"))
        config = {}
        provisioner.mount_volume(config, props)
        assert config["HostConfig"]["Binds"] == [f"ext:{tmp_path}:ro"]
        assert str(tmp_path) in config["Volumes"]


class TestResolveVolume:
    """Tests for reusing a sibling container's volume."""

    def test_matching_mount(self, gateway):
        gateway.add_container("host", "acme/host:1", mounts=[
            {"Destination": "/other", "Source": "/x", "Name": "other"},
            {"Destination": "/srv/ext", "Source": "/var/lib/docker/volumes/ext/_data", "Name": "ext"},
        ])
        volume = BindProvisioner(gateway).resolve_volume("host", "/srv/ext")
        assert volume.name == "ext"
        assert volume.source == "/var/lib/docker/volumes/ext/_data/"

    def test_missing_container(self, gateway):
        assert BindProvisioner(gateway).resolve_volume("nope", "/srv/ext") is None

    def test_no_name(self, gateway):
        assert BindProvisioner(gateway).resolve_volume(None, "/srv/ext") is None
        assert gateway.called("inspect") == []

    def test_no_matching_mount(self, gateway):
        gateway.add_container("host", "acme/host:1", mounts=[
            {"Destination": "/elsewhere", "Source": "/x", "Name": "x"},
        ])
        assert BindProvisioner(gateway).resolve_volume("host", "/srv/ext") is None

    def test_inspect_failure_means_no_volume(self, gateway, monkeypatch):
        """Test that a daemon error on the sibling inspect is not fatal."""
        from docker.errors import APIError

        def failing_inspect(name):
            raise APIError("server error")

        monkeypatch.setattr(gateway, "inspect_container", failing_inspect)
        assert BindProvisioner(gateway).resolve_volume("host", "/srv/ext") is None
