OPERATOR = "op-1"
