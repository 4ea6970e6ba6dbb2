"""EDOT collector support: zpages reading and Elastic component labelling."""