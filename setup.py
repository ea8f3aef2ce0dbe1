# setup.py

from setuptools import setup, find_packages

setup(
    name="SiteSum",
    version="1.0.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "numba",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
