from setuptools import find_packages
from setuptools import setup

PROJECT = 'rosagitops'
exec(open(f'{PROJECT}/version.py').read())

try:
    long_description = open('README.md', 'rt').read()
except IOError:
    long_description = ''

setup(
    name='rosa-gitops',
    version=__version__,  # noqa

    description='OpenShift GitOps bootstrap for ROSA clusters',
    long_description=long_description,
    long_description_content_type='text/markdown',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Intended Audience :: System Administrators',
        'Environment :: Console',
    ],

    platforms=['Any'],

    scripts=[],

    provides=[],
    python_requires='>=3.8',
    install_requires=[
        'cliff',
        'Jinja2',
        'loguru',
        'PyYAML',
        'requests',
        'tabulate',
        'urllib3',
    ],
    extras_require={
        'test': ['pytest'],
    },

    namespace_packages=[],
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,

    entry_points={
        'console_scripts': [
            'rosa-gitops = rosagitops.main:main'
        ],
        'rosagitops.commands': [
            'apply-yaml = rosagitops.commands.apply:ApplyYaml',
            'apply-yaml-optional = rosagitops.commands.apply:ApplyYamlOptional',
            'appset = rosagitops.commands.gitops:Appset',
            'argocd = rosagitops.commands.gitops:Argocd',
            'bootstrap = rosagitops.commands.gitops:Bootstrap',
            'configmap = rosagitops.commands.gitops:Configmap',
            'layer install = rosagitops.commands.layer:Install',
            'layer list = rosagitops.commands.layer:List',
            'layer show = rosagitops.commands.layer:Show',
            'mirror generate = rosagitops.commands.mirror:Generate',
            'namespace = rosagitops.commands.gitops:Namespace',
            'rbac = rosagitops.commands.gitops:Rbac',
            'subscription = rosagitops.commands.gitops:Subscription',
            'token oauth = rosagitops.commands.token:OAuth',
            'token serviceaccount = rosagitops.commands.token:ServiceAccount',
            'validate = rosagitops.commands.gitops:Validate',
            'verify monitoring = rosagitops.commands.verify:Monitoring',
            'wait-crd = rosagitops.commands.gitops:WaitCrd',
            'wait-operator = rosagitops.commands.wait:WaitOperator'
        ]
    },

    zip_safe=False,
)
