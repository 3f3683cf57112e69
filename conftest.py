import os
import tempfile

# Keep test runs from writing settings.ini and log files into the working tree
_test_home = tempfile.mkdtemp(prefix='stair_forecast_tests_')
os.environ.setdefault('STAIR_FORECAST_CONFIG_DIR', os.path.join(_test_home, 'config'))
