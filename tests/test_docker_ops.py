import subprocess

import pytest

from dnsprov import docker_ops
from dnsprov.docker_ops import (
    COMMAND_LABEL,
    CommandResult,
    DockerCLI,
    DockerCommandError,
    run_command,
    validate_container_name,
)


class Runner:
    """Scripted runner: maps the docker subcommand to stdout or an error code."""

    def __init__(self, outputs=None, failures=None):
        self.outputs = outputs or {}
        self.failures = failures or {}
        self.argvs = []

    def __call__(self, argv, timeout_s=None):
        self.argvs.append(list(argv))
        sub = argv[1]
        if sub in self.failures:
            raise DockerCommandError(argv, self.failures[sub], f"{sub} failed")
        return CommandResult(tuple(argv), 0, self.outputs.get(sub, ""), "")


def test_validate_container_name():
    validate_container_name("nginx-edge")
    validate_container_name("db_1.internal")
    for bad in ["", "-x", "has space", "a/b", "x" * 300]:
        with pytest.raises(ValueError):
            validate_container_name(bad)


def test_list_managed_filters_by_label_and_skips_blank_lines():
    runner = Runner(outputs={"ps": "nginx-edge\n\nsyslog\n"})
    cli = DockerCLI("/usr/bin/docker", runner=runner)

    assert cli.list_managed() == {"nginx-edge", "syslog"}
    assert runner.argvs == [
        ["/usr/bin/docker", "ps", "-a", "--format", "{{ .Names }}", "-f", f"label={COMMAND_LABEL}"]
    ]


def test_applied_fingerprint_reads_label():
    runner = Runner(outputs={"inspect": "LXAgODA6ODAgbmdpbng6MS4yNQ==\n"})
    cli = DockerCLI(runner=runner)

    assert cli.applied_fingerprint("nginx-edge") == "LXAgODA6ODAgbmdpbng6MS4yNQ=="
    assert runner.argvs[0] == [
        "docker",
        "inspect",
        "--type",
        "container",
        "-f",
        '{{index .Config.Labels "docker-dns-provision.command"}}',
        "nginx-edge",
    ]


@pytest.mark.parametrize("stdout", ["\n", "<no value>\n"])
def test_applied_fingerprint_absent_for_unlabelled_container(stdout):
    cli = DockerCLI(runner=Runner(outputs={"inspect": stdout}))
    assert cli.applied_fingerprint("postgres") is None
    assert cli.exists("postgres") is True


def test_applied_fingerprint_absent_when_inspect_fails():
    cli = DockerCLI(runner=Runner(failures={"inspect": 1}))
    assert cli.applied_fingerprint("missing") is None
    assert cli.exists("missing") is False


def test_run_passes_label_and_split_arguments():
    runner = Runner()
    DockerCLI(runner=runner).run("nginx-edge", "FP==", ["-p", "80:80", "nginx:1.25"])

    assert runner.argvs == [
        [
            "docker",
            "run",
            "-d",
            "--name",
            "nginx-edge",
            "--label",
            f"{COMMAND_LABEL}=FP==",
            "-p",
            "80:80",
            "nginx:1.25",
        ]
    ]


def test_stop_and_remove_removes_even_if_kill_fails():
    runner = Runner(failures={"kill": 1})
    DockerCLI(runner=runner).stop_and_remove("stopped")
    assert [a[1] for a in runner.argvs] == ["kill", "rm"]


def test_stop_and_remove_raises_when_rm_fails():
    runner = Runner(failures={"rm": 1})
    with pytest.raises(DockerCommandError):
        DockerCLI(runner=runner).stop_and_remove("stuck")


def test_run_command_success(monkeypatch):
    def fake_run(argv, **kwargs):
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] == 5
        return subprocess.CompletedProcess(argv, 0, stdout="ok\n", stderr="")

    monkeypatch.setattr(docker_ops.subprocess, "run", fake_run)
    res = run_command(["docker", "ps"], timeout_s=5)
    assert res.stdout == "ok\n"
    assert res.argv == ("docker", "ps")


def test_run_command_nonzero_exit_raises(monkeypatch):
    monkeypatch.setattr(
        docker_ops.subprocess,
        "run",
        lambda argv, **kw: subprocess.CompletedProcess(argv, 125, stdout="", stderr="Conflict. name in use\n"),
    )
    with pytest.raises(DockerCommandError) as ei:
        run_command(["docker", "run", "-d"])
    assert ei.value.returncode == 125
    assert ei.value.stderr == "Conflict. name in use"


@pytest.mark.parametrize(
    "exc",
    [subprocess.TimeoutExpired(["docker"], 1), FileNotFoundError("no such file: docker")],
)
def test_run_command_spawn_failures_raise(monkeypatch, exc):
    def fake_run(argv, **kwargs):
        raise exc

    monkeypatch.setattr(docker_ops.subprocess, "run", fake_run)
    with pytest.raises(DockerCommandError) as ei:
        run_command(["docker", "kill", "x"], timeout_s=1)
    assert ei.value.returncode is None


def test_exists_only_considers_containers():
    # An image named like the container makes `docker inspect --type container` fail.
    runner = Runner(failures={"inspect": 1})
    cli = DockerCLI(runner=runner)

    assert cli.exists("redis") is False
    assert runner.argvs[0][2:4] == ["--type", "container"]
