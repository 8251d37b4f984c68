from .log_storage_strategy import LogStorageStrategy
import os
from datetime import datetime

class LocalFileStrategy(LogStorageStrategy):
    """
    Stores layout engine logs in a local text file.
    """

    # INITIALIZE LOG STORAGE STRATEGY
    def __init__(self, file_location):
        """
        Args:
            file_location (str): The location of the log file.
        """
        self.file_location = self.resolve_file_path(file_location)
        self.initialize_log_file()

    # RESOLVE FILE PATH TO ABSOLUTE AND CREATE DIRECTORIES IF NEEDED
    def resolve_file_path(self, file_location):
        """
        Converts the given file path to an absolute path and creates its directory.

        Returns:
            str: The absolute file path.
        """
        file_location = os.path.abspath(os.fspath(file_location))
        os.makedirs(os.path.dirname(file_location), exist_ok=True)
        return file_location

    # START A NEW LOG FILE OR RESET AN EXISTING ONE
    def initialize_log_file(self):
        if os.path.exists(self.file_location):
            self.flush_logs()
        else:
            with open(self.file_location, 'w') as log_file:
                log_file.write(f"LOG INITIALIZATION: {datetime.now()}\n")

    # APPEND ONE ENTRY
    def store_log(self, message, priority, timestamp):
        with open(self.file_location, 'a') as log_file:
            log_file.write(f"[{timestamp}] [{priority}] {message}\n")

    # CLEAR ALL LOG ENTRIES FROM THE FILE
    def flush_logs(self):
        with open(self.file_location, 'w') as log_file:
            log_file.write(f"LOG FLUSHED: {datetime.now()}\n")
