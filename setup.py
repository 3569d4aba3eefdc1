"""
Setup configuration for hxedit package.
"""

from setuptools import setup, find_packages

setup(
    name="hxedit",
    version="0.1.0",
    description="Terminal Hex Editor with incremental search and query-replace",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pygments>=2.19.1",
        "wcwidth>=0.2.13",
        "pyperclip>=1.9.0",
        "toml>=0.10.2",
        "windows-curses>=2.4.1; platform_system == 'Windows'",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "hxedit=hxedit.__main__:main",
            "hxtool=hxedit.tool:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console :: Curses",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Disassemblers",
        "Topic :: Utilities",
    ],
)
