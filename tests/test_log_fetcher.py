import json
import subprocess
import threading
from unittest import mock

import pytest

from aci_compose.libs.classes.log_fetcher import AzCliLogFetcher
from aci_compose.libs.functions.convert import COMPOSE_DNS_SIDECAR_NAME
from aci_compose.libs.models.container_group import AciContext, ContainerGroup

GROUP = {
    "name": "demo",
    "containers": [
        {"name": "web", "image": "nginx"},
        {"name": COMPOSE_DNS_SIDECAR_NAME, "image": "busybox:1.31.1"},
    ],
}


@pytest.fixture
def fetcher() -> AzCliLogFetcher:
    return AzCliLogFetcher(
        AciContext(subscription_id="subID", resource_group="rg", location="eu")
    )


@mock.patch("shutil.which", return_value="/usr/bin/az")
@mock.patch("subprocess.run")
def test_show(mock_run, mock_which, fetcher: AzCliLogFetcher):
    mock_run.return_value = mock.Mock(stdout=json.dumps(GROUP))

    group = fetcher.show("demo")

    assert [c.name for c in group.containers] == ["web", COMPOSE_DNS_SIDECAR_NAME]
    args = mock_run.call_args.args[0]
    assert args[:3] == ["az", "container", "show"]
    assert args[args.index("--resource-group") + 1] == "rg"
    assert args[args.index("--subscription") + 1] == "subID"


@mock.patch("shutil.which", return_value=None)
def test_show_without_az(mock_which, fetcher: AzCliLogFetcher):
    with pytest.raises(FileNotFoundError):
        fetcher.show("demo")


@mock.patch("shutil.which", return_value="/usr/bin/az")
@mock.patch("subprocess.run")
def test_show_failure_is_propagated(mock_run, mock_which, fetcher: AzCliLogFetcher):
    mock_run.side_effect = subprocess.CalledProcessError(3, ["az"])

    with pytest.raises(subprocess.CalledProcessError):
        fetcher.get_logs("demo", mock.Mock())


@mock.patch("subprocess.Popen")
def test_get_logs_follows_each_service(mock_popen, fetcher: AzCliLogFetcher):
    process = mock_popen.return_value.__enter__.return_value
    process.stdout = iter(["starting\n", "ready\n"])
    callback = mock.Mock()

    with mock.patch.object(fetcher, "show") as mock_show:
        mock_show.return_value = ContainerGroup.model_validate(GROUP)
        fetcher.get_logs("demo", callback)
    for thread in fetcher._threads:
        thread.join(timeout=5)

    assert len(fetcher._threads) == 1
    args = mock_popen.call_args.args[0]
    assert args[args.index("--container-name") + 1] == "web"
    assert "--follow" in args
    callback.assert_has_calls(
        [
            mock.call("web", "demo_web", "starting"),
            mock.call("web", "demo_web", "ready"),
        ]
    )


@mock.patch("subprocess.Popen")
def test_stop_terminates_log_processes(mock_popen, fetcher: AzCliLogFetcher):
    process = mock_popen.return_value.__enter__.return_value
    released = threading.Event()
    process.terminate.side_effect = released.set

    def lines():
        yield "starting\n"
        released.wait(timeout=5)

    process.stdout = lines()
    callback = mock.Mock()

    with mock.patch.object(fetcher, "show") as mock_show:
        mock_show.return_value = ContainerGroup.model_validate(GROUP)
        fetcher.get_logs("demo", callback)
    fetcher.stop()

    process.terminate.assert_called()
    assert not any(thread.is_alive() for thread in fetcher._threads)
    assert fetcher._processes == []


def test_stop_without_streams(fetcher: AzCliLogFetcher):
    fetcher.stop()

    assert fetcher._threads == []
