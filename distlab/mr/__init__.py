"""MapReduce types, applications and a sequential runner."""