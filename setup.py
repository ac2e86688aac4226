from setuptools import setup, find_packages


if __name__ == "__main__":
    setup(
        name="ramsey",
        version="0.1.0",
        description="Optimal linear-quadratic policy under commitment via QZ",
        platforms="linux",
        python_requires=">=3.9",
        packages=find_packages(include=["ramsey", "ramsey.*"]),
        install_requires=[
            "numpy",
            "pandas",
            "scipy",
            "sympy",
            "pyyaml",
            "cerberus",
            "numba",
        ],
        extras_require={
            "test": ["pytest"],
        },
        include_package_data=True,
        package_data={
            "ramsey": [
                "examples/lqr/*",
                "examples/nk/*",
                "schema/*",
            ]
        },
    )
