# -*- Python -*-

import os
import platform
import shutil
import subprocess
import sys

import lit.formats

# Configuration file for the 'lit' test runner.

# name: The name of this test suite.
config.name = 'trill'

# testFormat: The test format to use to interpret tests.
config.test_format = lit.formats.ShTest(True)

# suffixes: A list of file extensions to treat as test files.
config.suffixes = ['.test']

# test_source_root: The root path where tests are located.
config.test_source_root = os.path.dirname(__file__)

# test_exec_root: The root path where tests should be run.
config.test_exec_root = os.path.join(config.test_source_root, 'Output')

# unit/ holds the pytest suite
config.excludes = ['unit', 'Inputs']

# Find trill
if hasattr(config, 'trill') and config.trill:
    trill_path = config.trill
else:
    trill_path = shutil.which('trill')
    if not trill_path and hasattr(config, 'trill_dir'):
        # Try to find it in the virtual environment
        venv_path = os.path.join(config.trill_dir, 'MyEnv', 'bin', 'trill')
        if os.path.exists(venv_path):
            trill_path = venv_path

config.substitutions.append(('%trill', trill_path or 'trill'))

# RPC endpoint for tests that talk to a live node
config.substitutions.append(('%{rpc_url}', getattr(config, 'rpc_url', 'http://localhost:8545')))

if hasattr(config, 'test_transactions'):
    for key, value in config.test_transactions.items():
        config.substitutions.append(('%{' + key + '}', value))

# Test directories
config.substitutions.append(('%S', config.test_source_root))
config.substitutions.append(('%p', config.test_source_root))
config.substitutions.append(('%{inputs}', os.path.join(config.test_source_root, 'Inputs')))

# Platform-specific features
if platform.system() == 'Darwin':
    config.available_features.add('darwin')
elif platform.system() == 'Linux':
    config.available_features.add('linux')


# Check if trill is available
def check_trill():
    if not trill_path:
        return False
    try:
        subprocess.run([trill_path, '--help'], check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        return False
    return True


if check_trill():
    config.available_features.add('trill')

# Add 'not' command
not_path = shutil.which('not')
if not not_path:
    # Try common locations
    for path in ['/usr/local/opt/llvm/bin', '/opt/homebrew/opt/llvm/bin', '/usr/bin']:
        candidate = os.path.join(path, 'not')
        if os.path.exists(candidate):
            not_path = candidate
            break
if not_path:
    config.substitutions.append(('not', not_path))

# Find and add FileCheck
filecheck_path = None
for path in ['/usr/local/opt/llvm/bin', '/opt/homebrew/opt/llvm/bin', '/usr/bin']:
    candidate = os.path.join(path, 'FileCheck')
    if os.path.exists(candidate):
        filecheck_path = candidate
        break

if not filecheck_path:
    filecheck_path = shutil.which('FileCheck')
# If FileCheck is not found, tests will fail but we'll let lit report it
config.substitutions.append(('FileCheck', filecheck_path or 'FileCheck'))

# Colors are off when output is piped, but NO_COLOR makes it explicit
config.environment['NO_COLOR'] = '1'
config.environment['PYTHONPATH'] = os.pathsep.join(sys.path)
