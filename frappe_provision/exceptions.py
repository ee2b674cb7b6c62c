class InvalidBranchException(Exception):
	pass


class InvalidRemoteException(Exception):
	pass


class CommandFailedError(Exception):
	pass


class DatabaseError(CommandFailedError):
	pass


class FeatureDoesNotExistError(CommandFailedError):
	pass


class ValidationError(Exception):
	pass


class ConfigError(ValidationError):
	pass


class NotInBenchDirectoryError(Exception):
	pass


class ServiceTimeoutError(Exception):
	pass


class FetchError(Exception):
	pass
