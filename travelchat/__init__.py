"""Travel chat assistant — answers travel questions with help from Amap tools.

A chat request goes through two completion passes: the first lets the
model request geocoding, POI search or route planning; the tools run
concurrently and their raw results are fed back for the second pass,
which writes the final answer.
"""
