"""Non-interactive ``git fetch`` with a hard timeout and failure classification."""

import os
import signal
import logging
import subprocess
from typing import Callable, Iterable, List, Optional, Tuple

from .types import ErrorKind, FetchOutcome
from ..utils.git import git_base_command, git_env

logger = logging.getLogger('pendector')

DEFAULT_FETCH_TIMEOUT = 5

# Every credential prompt answers "no" so fetch fails instead of blocking
NON_INTERACTIVE_ENV = {
    'GIT_TERMINAL_PROMPT': '0',
    'GIT_ASKPASS': 'true',
    'SSH_ASKPASS': 'true',
}
BATCH_SSH_COMMAND = 'ssh -o BatchMode=yes'

MessagePredicate = Callable[[str], bool]
ClassificationRule = Tuple[MessagePredicate, ErrorKind]


def contains_any(*needles: str) -> MessagePredicate:
    """Build a predicate matching messages that contain any of the substrings."""
    def predicate(message: str) -> bool:
        return any(needle in message for needle in needles)
    return predicate


DEFAULT_RULES: List[ClassificationRule] = [
    (contains_any(
        "Repository not found",
        "does not appear to be a git repository",
    ), ErrorKind.REPOSITORY_UNREACHABLE),
    (contains_any(
        "Authentication failed",
        "Could not read from remote",
        "Permission denied",
        "terminal prompts disabled",
        "could not read Username",
        "Host key verification failed",
    ), ErrorKind.AUTHENTICATION_FAILED),
    (contains_any(
        "Network is unreachable",
        "Temporary failure",
        "Could not resolve host",
        "Connection timed out",
        "Connection refused",
        "Failed to connect",
        "unable to access",
    ), ErrorKind.NETWORK_ERROR),
]


class FetchErrorClassifier:
    """Map fetch failure output to an ErrorKind.

    Rules are (predicate, kind) pairs evaluated in order; the first matching
    predicate decides. Messages no rule matches are FETCH_FAILED.
    """

    def __init__(self, rules: Optional[Iterable[ClassificationRule]] = None):
        """Initialize classifier.

        Args:
            rules: Ordered rules (default: DEFAULT_RULES)
        """
        self.rules: List[ClassificationRule] = list(DEFAULT_RULES if rules is None else rules)

    def classify(self, message: str) -> ErrorKind:
        for predicate, kind in self.rules:
            if predicate(message):
                return kind
        return ErrorKind.FETCH_FAILED


default_classifier = FetchErrorClassifier()


def fetch_env() -> dict:
    """Environment that keeps git fetch from ever prompting."""
    extra = dict(NON_INTERACTIVE_ENV)
    if 'GIT_SSH_COMMAND' not in os.environ:
        extra['GIT_SSH_COMMAND'] = BATCH_SSH_COMMAND
    return git_env(extra)


def kill_process_group(proc: subprocess.Popen) -> None:
    """Kill a fetch and every transport process it started.

    git runs in its own session, so its process group holds ``ssh`` or
    ``git-remote-https`` and the per-remote fetches spawned by ``--all``.

    Args:
        proc: Running git process
    """
    if os.name != 'posix':
        proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        # The group exited between the deadline and the kill
        pass


def fetch_repository(
    repo_path: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    classifier: Optional[FetchErrorClassifier] = None
) -> FetchOutcome:
    """Fetch all remotes of a repository.

    Once ``timeout`` seconds have passed the whole process group of the
    fetch is killed, transports included. A timeout of zero or less times
    out immediately without starting git.

    Args:
        repo_path: Repository root
        timeout: Wall-clock limit in seconds
        classifier: Failure classifier (default: DEFAULT_RULES)

    Returns:
        FetchOutcome; this function does not raise
    """
    classifier = classifier or default_classifier

    if timeout <= 0:
        return FetchOutcome.timed_out(repo_path, timeout)

    command = git_base_command(repo_path) + ["fetch", "--all", "--quiet"]
    logger.debug(f"Fetching {repo_path} (timeout {timeout}s)")

    try:
        proc = subprocess.Popen(
            command,
            cwd=repo_path,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding='utf-8',
            errors='replace',
            env=fetch_env(),
            start_new_session=True
        )
    except OSError as e:
        return FetchOutcome.failed(repo_path, ErrorKind.FETCH_FAILED, f"Could not start git fetch: {e}")

    try:
        _, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        kill_process_group(proc)
        proc.communicate()
        return FetchOutcome.timed_out(repo_path, timeout)

    if proc.returncode == 0:
        return FetchOutcome.ok(repo_path)

    message = (stderr or "").strip()
    if not message:
        return FetchOutcome.failed(
            repo_path,
            ErrorKind.FETCH_FAILED,
            f"Failed to fetch from remote (exit code {proc.returncode})"
        )
    return FetchOutcome.failed(repo_path, classifier.classify(message), message)
