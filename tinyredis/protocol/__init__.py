"""RESP parsing and reply encoding."""