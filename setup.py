from setuptools import setup, find_packages

setup(
    name="dockdeps",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "docker>=6.0",
        "requests>=2.28",
        "pathspec>=0.11",
        "colorlog>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dockdeps=dockdeps.CLI.main:main",
        ],
    },
)
