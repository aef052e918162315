"""
python -m build
twine upload dist/*
"""

from setuptools import setup, find_packages


def prism_setup():
    with open("requirements.txt", "rt") as fp:
        install_requires = [line for line in fp.read().strip().split("\n") if line and not line.startswith("#")]

    version = "1.0.0"

    setup(
        name="prism-hal",
        packages=find_packages(exclude=["tests", "tests.*"]),
        version=version,
        license="MIT",
        description="prism : hypermedia (HAL) REST endpoints over relational resources",
        long_description=open("README.rst").read(),
        keywords=["SqlAlchemy", "FastAPI", "REST", "HAL", "Hypermedia", "JSON Schema"],
        python_requires=">=3.8, <4",
        install_requires=install_requires,
        classifiers=[
            "Development Status :: 3 - Alpha",
            "License :: OSI Approved :: MIT License",
            "Intended Audience :: Developers",
            "Framework :: FastAPI",
            "Topic :: Software Development :: Libraries",
            "Environment :: Web Environment",
            "Programming Language :: Python :: 3.12",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.8",
        ],
        extras_require={"test": ["pytest>=7", "httpx>=0.24"]},
    )


prism_setup()  # pragma: no cover
