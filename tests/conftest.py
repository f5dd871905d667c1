import os

import pytest
from git import Actor, Repo

from promptspace import create_app

BRANCH = 'main'
ACTOR = Actor('Test Seeder', 'seed@example.com')


def commit_file(repo: Repo, relpath: str, content: str, message: str):
    """Write a file in `repo`'s working tree and commit it."""
    path = os.path.join(repo.working_tree_dir, relpath)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as fh:
        fh.write(content)
    repo.index.add([relpath])
    return repo.index.commit(message, author=ACTOR, committer=ACTOR)


@pytest.fixture(scope='function')
def remote(tmp_path):
    """
    A bare repository standing in for the hosted remote, with one commit
    (a README) on the `main` branch.
    """
    remote_path = tmp_path / 'remote.git'
    Repo.init(remote_path, bare=True)

    seed = Repo.init(tmp_path / 'seed')
    commit_file(seed, 'README.md', '# Prompts\n', 'Initial commit')
    seed.create_remote('origin', str(remote_path))
    seed.remote('origin').push(refspec=f'HEAD:refs/heads/{BRANCH}')
    return remote_path


@pytest.fixture(scope='function')
def other_clone(tmp_path, remote):
    """A second working copy, used to move the remote branch behind the app's back."""
    return Repo.clone_from(str(remote), str(tmp_path / 'other'), branch=BRANCH)


@pytest.fixture(scope='function')
def app(tmp_path, remote):
    """
    Fixture that creates a test app whose working copy and upload spool live
    under tmp_path and whose remote is the local bare repository.
    """
    app = create_app(
        'testing',
        LOCAL_REPO_PATH=str(tmp_path / 'work'),
        GIT_REMOTE_URL=str(remote),
        UPLOAD_TMP_DIR=str(tmp_path / 'uploads'),
    )
    yield app


@pytest.fixture(scope='function')
def promptspace(app):
    """The app's store/synchronizer handle, with the working copy already cloned."""
    ps = app.extensions['promptspace']
    ps.synchronizer.ensure_up_to_date()
    return ps


@pytest.fixture(scope='function')
def client(app, promptspace):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def commit_to():
    """Expose `commit_file` to tests without importing conftest."""
    return commit_file
