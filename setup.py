#!/usr/bin/env python3

from setuptools import setup, find_packages


if __name__ == "__main__":
    setup(
        name="geonodes",
        packages=find_packages(include=["geonodes", "geonodes.*"]),
        python_requires='>3.10.0',
        version="0.1.0",
        license="MIT",
        description="Node-graph procedural mesh generation with a live 3D preview",
        keywords=["procedural", "mesh", "node graph"],
        classifiers=[],
        install_requires=[
            "numpy",
        ],
        extras_require={
            "test": ["pytest"],
        },
        zip_safe=False,
    )
