"""
Constants used across the fellingdate codebase.
"""

# Reference data set used when none is specified
DEFAULT_SW_DATA = 'Hollstein_1980'

# Density function fitted to the reference data by default
DEFAULT_DENSFUN = 'lognormal'

# Probability mass within the credible interval
DEFAULT_CRED_MASS = 0.954

# Field delimiter of user-supplied reference CSV files
DEFAULT_SEP = ';'

# Years added beyond the latest last ring when building the SPD year axis
DEFAULT_LOOKAHEAD = 100

# Substring marking a waney edge in non-logical waney edge columns
WANEY_EDGE_TOKEN = 'wk'

# Required columns of a reference data set
REFERENCE_COLUMNS = ('n_sapwood', 'count')

# Default column names of a series table
SERIES_COL = 'series'
LAST_COL = 'last'
N_SAPWOOD_COL = 'n_sapwood'
WANEYEDGE_COL = 'waneyedge'

# Summed probability columns of the SPD table
SPD_COL = 'SPD'
SPD_EXACT_COL = 'SPD_exact'
