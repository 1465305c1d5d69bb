from setuptools import setup, find_packages

# Read requirements
with open("requirements.txt") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

setup(
    name="lanscan",
    version="1.0.0",
    description="LAN host discovery and TCP port scanner with bounded concurrency",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    package_dir={"": "."},
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "lanscan=lanscan.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
