"""SysProbe command line."""
