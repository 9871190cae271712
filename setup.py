from setuptools import setup

setup(
    name='secure-cicd-blueprint',
    version='1.0.0',
    py_modules=['securecicd'],
    packages=['modules', 'modules.config', 'modules.utils'],
    install_requires=[
        'Click',
        'python-hcl2',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points='''
        [console_scripts]
        securecicd=securecicd:main
    ''',
)
