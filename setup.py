from setuptools import setup, find_packages

setup(
    name="ihda",
    version="0.1.0",
    description="Array-backed heaps and an incremental grid A* search for jointed-arm reach planning",
    packages=find_packages(include=["ihda", "ihda.*"]),
    python_requires=">=3.9",
    install_requires=[
        # Runtime dependencies
        "numpy",
        "pandas",
        "matplotlib",
        "orjson",
    ],
    extras_require={
        # Developer extras
        "dev": [
            "pytest",
            "black",
            "mypy",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "ihda-reach=ihda.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
