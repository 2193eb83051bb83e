"""Request and reply messages of the single-server key/value service."""