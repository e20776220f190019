"""Shell commands exposing tidyground functionalities.

Reshape
=======

``tidyground-reshape`` spreads multi-value columns of a CSV file
into indicator columns and writes the result to a new CSV file::

    tidyground-reshape SAFI_clean.csv -o interviews_plotting.csv \\
        --spread items_owned:no_listed_items --spread months_lack_food \\
        --sum number_months_lack_food=Apr:Sept --sum number_items=bicycle:television

When no output file is provided, a preview of the result is printed instead.
"""
