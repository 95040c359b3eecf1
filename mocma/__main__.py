import doctest
import mocma

doctest.ELLIPSIS_MARKER = '***'  # to be able to ignore an entire output,
    # putting the default '...' doesn't work for that.
print('doctesting `mocma`')
for module in (mocma.hv, mocma.indicators, mocma.selection, mocma.individual,
               mocma.evaluation, mocma.objectives, mocma.nondominatedarchive,
               mocma.mocma):
    print(module.__name__, doctest.testmod(module))
