from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def install(c):
    """Install the project in editable mode with test dependencies."""
    c.run(f"pip install -e '{PROJECT_ROOT}[test]'")


@task
def test(c, path=None):
    """Run the test suite. Optionally specify a specific test path."""
    manage_py = project_relative("manage.py")
    settings = "--settings=padeltour.test_settings"
    if path:
        c.run(f"python {manage_py} test {path} {settings}")
    else:
        c.run(f"python {manage_py} test padeltour {settings}")


@task
def pytest(c, path=None):
    """Run the test suite with pytest."""
    c.run(f"pytest {path or project_relative('padeltour')}")


@task
def simulate(c, type="ROUND_ROBIN", players=8, category="OPEN_250", seed=None):
    """Simulate a tournament with random results."""
    manage_py = project_relative("manage.py")
    command = (
        f"python {manage_py} simulate_tournament --type {type} "
        f"--players {players} --category {category}"
    )
    if seed is not None:
        command += f" --seed {seed}"
    c.run(command)


@task
def clean(c):
    """Remove Python bytecode and test caches."""
    c.run(f"find {PROJECT_ROOT} -name '__pycache__' -type d -prune -exec rm -rf {{}} +")
    c.run(f"rm -rf {project_relative('.pytest_cache')}")
