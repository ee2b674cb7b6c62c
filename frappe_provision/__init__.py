VERSION = "1.0.0-dev"
PROJECT_NAME = "frappe-provision"
config_path = None
LOG_BUFFER = []
