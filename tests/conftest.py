import io
import tarfile
from types import SimpleNamespace

import pytest
from docker.errors import NotFound

from docker_inventory_agent.config import AgentConfig


class FakeContainer:
    """In-memory stand-in for ``docker.models.containers.Container``."""

    def __init__(self, container_id, name="test", image="test:latest", outputs=None,
                 export_data=b"", size_root_fs=0):
        self.id = container_id
        self.name = name
        self.image = image
        self.outputs = dict(outputs or {})
        self.export_data = export_data
        self.export_error = None
        self.size_root_fs = size_root_fs
        self.exec_calls = []
        self.create_kwargs = {}
        self.running = False
        self.stopped = False
        self.removed = False
        self.remove_error = None

    def exec_run(self, cmd, **kwargs):
        argv = tuple(cmd)
        self.exec_calls.append((argv, kwargs))
        result = self.outputs.get(argv)
        if result is None:
            return _ExecResult(127, b"exec: \"missing\": executable file not found")
        if isinstance(result, Exception):
            raise result
        exit_code, output = result
        return _ExecResult(exit_code, output)

    def export(self, chunk_size=None):
        if self.export_error is not None:
            raise self.export_error
        data = self.export_data
        size = chunk_size or 512
        return iter([data[i:i + size] for i in range(0, len(data), size)])

    def start(self):
        self.running = True

    def stop(self):
        self.running = False
        self.stopped = True

    def remove(self, force=False):
        if self.remove_error is not None:
            raise self.remove_error
        self.removed = True

    def summary(self):
        return {
            "Id": self.id,
            "Names": ["/" + self.name],
            "Image": self.image,
            "ImageID": "sha256:" + self.id,
            "SizeRootFs": self.size_root_fs,
        }


class _ExecResult(tuple):
    def __new__(cls, exit_code, output):
        return super().__new__(cls, (exit_code, output))

    @property
    def exit_code(self):
        return self[0]

    @property
    def output(self):
        return self[1]


class FakeContainers:
    def __init__(self, client):
        self.client = client
        self.created = []
        self.create_error = None

    def get(self, container_id):
        for container in self.client.all_containers:
            if container.id.startswith(container_id):
                return container
        raise NotFound(f"No such container: {container_id}")

    def create(self, image, **kwargs):
        if self.create_error is not None:
            raise self.create_error
        container = self.client.new_container(image)
        container.create_kwargs = kwargs
        self.created.append(container)
        self.client.all_containers.append(container)
        return container


class FakeImages:
    def __init__(self, tags=None):
        self.tags = list(tags or [])
        self.pulled = []

    def list(self):
        return [SimpleNamespace(tags=[tag]) for tag in self.tags]

    def pull(self, repository, tag=None):
        self.pulled.append(repository)
        self.tags.append(repository if ":" in repository else repository + ":latest")


class FakeApi:
    def __init__(self, client):
        self.client = client
        self.size_flags = []

    def containers(self, size=False):
        self.size_flags.append(size)
        return [c.summary() for c in self.client.all_containers if c.running]


class FakeDockerClient:
    """Minimal docker client: ``api``, ``containers`` and ``images``."""

    def __init__(self, containers=None, image_tags=None, container_factory=None):
        self.all_containers = list(containers or [])
        self.api = FakeApi(self)
        self.containers = FakeContainers(self)
        self.images = FakeImages(image_tags)
        self.container_factory = container_factory

    def new_container(self, image):
        if self.container_factory is not None:
            return self.container_factory(image)
        return FakeContainer("f" * 64, name="forced", image=image)


def make_tar(files, directories=()):
    """Build an in-memory tar with ``{name: bytes}`` regular files."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name in directories:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            tar.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


DPKG_OUTPUT = (
    b"Desired=Unknown/Install/Remove/Purge/Hold\n"
    b"| Status=Not/Inst/Conf-files/Unpacked/halF-conf/Half-inst/trig-aWait/Trig-pend\n"
    b"||/ Name           Version          Architecture Description\n"
    b"+++-==============-================-============-=================================\n"
    b"ii  bash           5.1-2+deb11u1    amd64        GNU Bourne Again SHell\n"
    b"ii  libc6:amd64    2.31-0ubuntu9.9  amd64        GNU C Library: Shared libraries\n"
)


@pytest.fixture
def config():
    return AgentConfig({"apiKey": "token", "productName": "containers"})


@pytest.fixture
def running_container():
    container = FakeContainer(
        "a1b2c3d4e5f6" + "0" * 52,
        name="web",
        image="debian:11",
        outputs={("dpkg", "-l"): (0, DPKG_OUTPUT)},
        export_data=make_tar(
            {
                "usr/share/java/app.jar": b"jar-bytes",
                "etc/passwd": b"root:x:0:0::/root:/bin/bash\n",
            },
            directories=["usr/", "usr/share/", "usr/share/java/", "etc/"],
        ),
        size_root_fs=4096,
    )
    container.running = True
    return container


