import io

from setuptools import find_packages, setup

# Read the README.md file
with io.open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

install_requires = [
    "requests>=2.28.0",
    "pydantic>=2.0.0",
    "pydantic-settings>=2.0.0",
]

extras_require = {
    "test": [
        "pytest>=8.0.0",
        "pytest-cov>=5.0.0",
        "pytest-xdist>=3.6.0",
    ],
}

setup(
    name="vupload",
    version="0.1.0",
    packages=find_packages(include=["vupload", "vupload.*"]),
    install_requires=install_requires,
    long_description=long_description,
    long_description_content_type="text/markdown",
    extras_require=extras_require,
    python_requires=">=3.10",
    entry_points={
        "console_scripts": ["vupload=vupload.client.__main__:main"],
    },
)
