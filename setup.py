import re
from pathlib import Path
from setuptools import setup, find_packages

ROOT = Path(__file__).resolve().parent


def read_readme() -> str:
    readme_path = ROOT / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


def read_version() -> str:
    engine_src = (ROOT / "symmetricmorph" / "engine.py").read_text(encoding="utf-8")
    match = re.search(r'^\s*ENGINE_VERSION\s*=\s*"([^"]+)"', engine_src, re.MULTILINE)
    if not match:
        raise RuntimeError("ENGINE_VERSION not found in symmetricmorph/engine.py")
    return match.group(1)


setup(
    name="symmetricmorph",
    version=read_version(),
    packages=find_packages(exclude=("tests", "tests.*", "debug")),
    install_requires=[
        "numpy>=1.24.0",
    ],
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "symmetricmorph=symmetricmorph.main:main",
        ],
    },
    description="Stream cipher with cascading feedback, dynamic masking and a built-in stream MAC",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)
