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
Shared fixtures: an in-memory stand-in for the Docker daemon gateway.
"""
import copy
import pytest

from extdock.errors import CreateFailed, NotFound, PullFailed, UnsupportedHost
from extdock.MODELS.install_state import DaemonVersion


class FakeGateway:
    """
    Mimics DaemonGateway against in-memory images and containers.
    """

    def __init__(self, os_name="linux", arch="amd64", version="24.0.7"):
        self.version_info = {"Version": version, "Os": os_name, "Arch": arch}
        self.images = []
        self.containers = {}
        self.failing_pulls = set()
        self.calls = []

    def add_container(self, name, image, state="created", mounts=None, config=None, host_config=None):
        if image not in self.images:
            self.images.append(image)
        cfg = dict(config or {})
        cfg["Image"] = image
        self.containers[name] = {
            "Config": cfg,
            "HostConfig": dict(host_config or {}),
            "Mounts": list(mounts or []),
            "State": state,
        }

    def get_version(self):
        self.calls.append(("version",))
        version = DaemonVersion.from_api(self.version_info)
        if version.os != "linux":
            raise UnsupportedHost(version.os)
        return version

    def list_images(self, reference=None):
        self.calls.append(("images", reference))
        return [{"RepoTags": [image]} for image in self.images
                if reference is None or image == reference]

    def list_containers(self, name=None):
        self.calls.append(("containers", name))
        return [{"Names": ["/" + cname], "State": info["State"].capitalize()}
                for cname, info in self.containers.items()
                if name is None or name in cname]

    def inspect_container(self, name):
        self.calls.append(("inspect", name))
        if name not in self.containers:
            raise NotFound(name)
        info = self.containers[name]
        return {
            "Config": copy.deepcopy(info["Config"]),
            "HostConfig": copy.deepcopy(info["HostConfig"]),
            "Mounts": copy.deepcopy(info["Mounts"]),
            "State": {"Status": info["State"]},
        }

    def inspect_image(self, repo_tag):
        if repo_tag not in self.images:
            raise NotFound(repo_tag, kind="image")
        return {"RepoTags": [repo_tag]}

    def pull_image(self, repo_tag, progress=None):
        self.calls.append(("pull", repo_tag))
        if repo_tag in self.failing_pulls:
            raise PullFailed(repo_tag, "manifest unknown")
        if repo_tag not in self.images:
            self.images.append(repo_tag)

    def create_container(self, config, name):
        self.calls.append(("create", name))
        if name in self.containers:
            raise CreateFailed(name, "name already in use")
        config = copy.deepcopy(config)
        host_config = config.pop("HostConfig", {})
        self.containers[name] = {"Config": config, "HostConfig": host_config,
                                 "Mounts": [], "State": "created"}
        return f"id-{name}"

    def remove_container(self, name):
        self.calls.append(("remove", name))
        if name not in self.containers:
            raise NotFound(name)
        del self.containers[name]

    def remove_image(self, repo_tag):
        self.calls.append(("rmi", repo_tag))
        self.images.remove(repo_tag)

    def start_container(self, name):
        self.calls.append(("start", name))
        if name not in self.containers:
            raise NotFound(name)
        self.containers[name]["State"] = "running"

    def stop_container(self, name):
        self.calls.append(("stop", name))
        if name not in self.containers:
            raise NotFound(name)
        if self.containers[name]["State"] == "running":
            self.containers[name]["State"] = "exited"

    def called(self, action):
        return [call for call in self.calls if call[0] == action]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def descriptor():
    from extdock.MODELS.image_descriptor import ImageDescriptor
    return ImageDescriptor(repo="acme/app", tags={"amd64": "1.0", "arm64": "1.0-arm"},
                           binds=["/data/db"])
