from setuptools import setup, find_packages

setup(
    name="migen-fabric",
    use_scm_version={"fallback_version": "0.1.0"},
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.6",
    install_requires=[
        "migen @ git+https://github.com/m-labs/migen.git",
        "misoc @ git+https://github.com/m-labs/misoc.git",
        "toolz",
        "ramda",
        "click",
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "fabric_gen = tools.fabric_gen:cli",
        ],
    })
