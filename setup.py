# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="simple-include",
    version="0.3.0",
    description="Mirror a source tree into a target tree, expanding include directives in text files",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["simple_include*"]),
    install_requires=[
        "watchdog>=3.0",  # Filesystem events for watch mode
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'simple-include=simple_include.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
