from setuptools import setup, find_packages

from pyheos.__version__ import __version__

with open("README.md", "r", encoding="utf-8") as f:
  long_description = f.read()


extras_dev = [
  "pytest",
  "pytest-timeout",
  "pylint",
  "mypy",
]

extras_all = extras_dev

setup(
  name="pyheos",
  version=__version__,
  packages=find_packages(exclude=["tools", "tools.*"]),
  description="An asyncio client for the HEOS control protocol",
  long_description=long_description,
  long_description_content_type="text/markdown",
  install_requires=[],
  python_requires=">=3.11",
  package_data={"pyheos": ["version.txt"]},
  extras_require={
    "dev": extras_dev,
    "all": extras_all,
  },
)
