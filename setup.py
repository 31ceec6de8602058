from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='marking_tree',
    version='0.1.0',
    install_requires=requirements,
    package_dir={'': 'src'},
    packages=find_packages('src'),
    package_data={
        'marking_tree.exceptions': ['error_registry.yaml'],
    },
    extras_require={
        'test': [
            'pytest>=7.4',
            'httpx>=0.25',
        ],
    }
)
